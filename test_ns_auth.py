"""
TBA Request Signing Tests

Validates the OAuth 1.0 (HMAC-SHA256) signer:
1. RFC 3986 percent-encoding, including ! * ' ( )
2. Query parameters are signed but never emitted as header fields
3. Signatures are a pure function of method, URL, credentials, nonce and timestamp
4. Nonces never repeat between calls
5. Missing credentials fail before any network call
"""

import asyncio
import base64
import hashlib
import hmac
import re

import pytest

from connectors.netsuite.ns_auth import (
    ENV_VARS,
    NSAuthProvider,
    NSCredentials,
    OAuth1Signer,
    SignedRequest,
    normalize_parameters,
    percent_encode,
    signature_base_string,
    split_url,
)
from connectors.netsuite.ns_client import NSApiClient, NSApiConfig, NSConfigurationError


HEADER_PAIR = re.compile(r'(\w+)="([^"]*)"')


def parse_header(header: str) -> dict:
    assert header.startswith("OAuth ")
    return dict(HEADER_PAIR.findall(header))


class TestPercentEncode:
    """RFC 3986 encoding with the RFC 5849 reserved-character rules."""

    def test_escapes_slash_equals_and_space(self):
        assert percent_encode("a b/c=d") == "a%20b%2Fc%3Dd"

    def test_escapes_sub_delims(self):
        assert percent_encode("!*'()") == "%21%2A%27%28%29"

    def test_no_reserved_characters_left(self):
        encoded = percent_encode(":/?#[]@!$&'()*+,;= ")
        assert re.fullmatch(r"(%[0-9A-F]{2})+", encoded)

    def test_unreserved_pass_through(self):
        assert percent_encode("AZaz09-._~") == "AZaz09-._~"

    def test_utf8(self):
        assert percent_encode("é") == "%C3%A9"


class TestSignatureBaseString:
    """Base string construction per RFC 5849 section 3.4.1."""

    def test_split_url_separates_query(self):
        base, params = split_url("https://Example.COM/services/rest/query/v1/suiteql?limit=10&offset=0")
        assert base == "https://example.com/services/rest/query/v1/suiteql"
        assert params == [("limit", "10"), ("offset", "0")]

    def test_split_url_keeps_non_default_port(self):
        base, _ = split_url("https://example.com:8443/x")
        assert base == "https://example.com:8443/x"

    def test_split_url_drops_default_port(self):
        base, _ = split_url("https://example.com:443/x")
        assert base == "https://example.com/x"

    def test_parameters_sorted_by_key_then_value(self):
        params = [("b", "2"), ("a", "z"), ("a", "y")]
        assert normalize_parameters(params) == "a=y&a=z&b=2"

    def test_base_string_layout(self):
        base_string = signature_base_string("get", "https://example.com/path", [("b", "2"), ("a", "1")])
        assert base_string == "GET&https%3A%2F%2Fexample.com%2Fpath&a%3D1%26b%3D2"


class TestOAuth1Signer:
    """Header contents and signature properties."""

    URL = "https://1234567-sb1.suitetalk.api.netsuite.com/services/rest/query/v1/suiteql?limit=1000&offset=0"

    def test_header_has_realm_and_sorted_oauth_params(self, credentials):
        signer = OAuth1Signer(credentials)
        header = signer.authorization_header("POST", self.URL)

        assert header.startswith('OAuth realm="1234567_SB1", ')
        keys = [k for k, _ in HEADER_PAIR.findall(header)][1:]
        assert keys == sorted(keys)
        assert keys == [
            "oauth_consumer_key",
            "oauth_nonce",
            "oauth_signature",
            "oauth_signature_method",
            "oauth_timestamp",
            "oauth_token",
            "oauth_version",
        ]

    def test_query_params_not_in_header(self, credentials):
        header = OAuth1Signer(credentials).authorization_header("POST", self.URL)
        fields = parse_header(header)
        assert "limit" not in fields
        assert "offset" not in fields
        assert all(k == "realm" or k.startswith("oauth_") for k in fields)

    def test_query_params_change_signature(self, credentials):
        signer = OAuth1Signer(credentials)
        base = self.URL.split("?")[0]
        first = signer.compute_signature("POST", f"{base}?limit=1000&offset=0", "n", "1700000000")
        second = signer.compute_signature("POST", f"{base}?limit=1000&offset=1000", "n", "1700000000")
        assert first != second

    def test_fixed_values(self, credentials):
        fields = parse_header(OAuth1Signer(credentials).authorization_header("GET", self.URL))
        assert fields["oauth_consumer_key"] == "consumer-key"
        assert fields["oauth_token"] == "token-id"
        assert fields["oauth_signature_method"] == "HMAC-SHA256"
        assert fields["oauth_version"] == "1.0"
        assert fields["oauth_timestamp"].isdigit()

    def test_signature_is_deterministic(self, credentials):
        signer = OAuth1Signer(credentials)
        a = signer.authorization_header("POST", self.URL, nonce="abc123", timestamp="1700000000")
        b = signer.authorization_header("POST", self.URL, nonce="abc123", timestamp="1700000000")
        assert a == b

    def test_signature_matches_independent_hmac(self, credentials):
        signer = OAuth1Signer(credentials)
        url = "https://example.com/path?b=2&a=1"
        signature = signer.compute_signature("GET", url, "n", "1")

        base_string = (
            "GET&https%3A%2F%2Fexample.com%2Fpath&"
            "a%3D1%26b%3D2%26oauth_consumer_key%3Dconsumer-key%26oauth_nonce%3Dn"
            "%26oauth_signature_method%3DHMAC-SHA256%26oauth_timestamp%3D1"
            "%26oauth_token%3Dtoken-id%26oauth_version%3D1.0"
        )
        expected = base64.b64encode(
            hmac.new(b"consumer-secret&token-secret", base_string.encode(), hashlib.sha256).digest()
        ).decode()
        assert signature == expected

    def test_signature_is_percent_encoded_in_header(self, credentials):
        signer = OAuth1Signer(credentials)
        header = signer.authorization_header("GET", self.URL, nonce="n", timestamp="1")
        raw = signer.compute_signature("GET", self.URL, "n", "1")
        assert parse_header(header)["oauth_signature"] == percent_encode(raw)

    def test_nonce_unique_per_call(self, credentials):
        signer = OAuth1Signer(credentials)
        first = parse_header(signer.authorization_header("GET", self.URL))["oauth_nonce"]
        second = parse_header(signer.authorization_header("GET", self.URL))["oauth_nonce"]
        assert first != second
        assert len(first) >= 32

    def test_signed_request(self, credentials):
        signed = OAuth1Signer(credentials).sign("post", self.URL)
        assert signed.method == "POST"
        assert signed.url == self.URL
        assert signed.authorization.startswith("OAuth ")


class TestCredentials:
    """Configuration loading."""

    def test_from_env(self, monkeypatch):
        for field_name, var in ENV_VARS.items():
            monkeypatch.setenv(var, f"value-{field_name}")
        creds = NSCredentials.from_env(load_env_file=False)
        assert creds.account_id == "value-account_id"
        assert creds.token_secret == "value-token_secret"

    def test_missing_env_names_every_variable(self, monkeypatch):
        for var in ENV_VARS.values():
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setenv("NETSUITE_ACCOUNT_ID", "1234567")

        with pytest.raises(NSConfigurationError) as exc_info:
            NSCredentials.from_env(load_env_file=False)
        message = str(exc_info.value)
        assert "NETSUITE_CONSUMER_KEY" in message
        assert "NETSUITE_TOKEN_SECRET" in message
        assert "NETSUITE_ACCOUNT_ID" not in message

    def test_signer_rejects_incomplete_credentials(self):
        creds = NSCredentials("1234567", "ck", "", "tid", "ts")
        with pytest.raises(NSConfigurationError):
            OAuth1Signer(creds)

    def test_from_mapping(self):
        creds = NSCredentials.from_mapping({
            "account_id": "1", "consumer_key": "2", "consumer_secret": "3",
            "token_id": "4", "token_secret": "5",
        })
        assert creds.token_id == "4"

    def test_credentials_are_immutable(self, credentials):
        with pytest.raises(Exception):
            credentials.account_id = "other"

    def test_repr_hides_secrets(self, credentials):
        text = repr(credentials)
        assert "consumer-secret" not in text
        assert "token-secret" not in text


class TestNSAuthProvider:
    """Lazy, load-once credential resolution."""

    def test_loads_credentials_once(self, credentials):
        calls = []

        def loader():
            calls.append(1)
            return credentials

        provider = NSAuthProvider(credentials_loader=loader)
        provider.get_authorization_header("GET", "https://example.com/a")
        provider.get_authorization_header("GET", "https://example.com/b")
        assert len(calls) == 1

    def test_sign_returns_signed_request(self, credentials):
        signed = NSAuthProvider(credentials).sign("get", "https://example.com/a?x=1")
        assert isinstance(signed, SignedRequest)
        assert signed.method == "GET"
        assert signed.authorization.startswith('OAuth realm="1234567_SB1", ')

    def test_client_headers_come_from_sign(self, credentials, http):
        provider = NSAuthProvider(credentials)
        seen = []
        original_sign = provider.sign

        def recording_sign(method, url):
            signed = original_sign(method, url)
            seen.append(signed)
            return signed

        provider.sign = recording_sign
        client = NSApiClient(provider, NSApiConfig())
        session = http.install(client, http.json(200, {}))

        asyncio.run(client.request("GET", "/record/v1/metadata-catalog/"))

        assert len(seen) == 1
        assert seen[0].url == client.build_url("/record/v1/metadata-catalog/")
        assert session.calls[0]["headers"]["Authorization"] == seen[0].authorization

    def test_failed_load_is_not_cached(self):
        calls = []

        def loader():
            calls.append(1)
            raise NSConfigurationError("Missing NetSuite configuration")

        provider = NSAuthProvider(credentials_loader=loader)
        for _ in range(2):
            with pytest.raises(NSConfigurationError):
                provider.get_authorization_header("GET", "https://example.com/a")
        assert len(calls) == 2

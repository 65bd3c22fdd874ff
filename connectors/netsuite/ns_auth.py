"""NetSuite Token-Based Authentication (OAuth 1.0a, HMAC-SHA256).

Builds the per-request Authorization header NetSuite expects for
SuiteTalk REST calls. Every call is signed individually; there is no
token exchange and nothing to refresh.

Signing follows RFC 5849 section 3.4:
- URL query parameters are part of the signature base string but are
  never emitted as header fields
- keys and values are percent-encoded per RFC 3986 (``! * ' ( )`` included)
- the signature is HMAC-SHA256 over the base string, base64 encoded
"""

import base64
import hashlib
import hmac
import os
import secrets
import time
import urllib.parse
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from dotenv import load_dotenv

from connectors.netsuite.ns_client import NSConfigurationError


REPO_ROOT = Path(__file__).resolve().parents[2]

SIGNATURE_METHOD = "HMAC-SHA256"
OAUTH_VERSION = "1.0"

# Environment variable per credential field
ENV_VARS: Dict[str, str] = {
    "account_id": "NETSUITE_ACCOUNT_ID",
    "consumer_key": "NETSUITE_CONSUMER_KEY",
    "consumer_secret": "NETSUITE_CONSUMER_SECRET",
    "token_id": "NETSUITE_TOKEN_ID",
    "token_secret": "NETSUITE_TOKEN_SECRET",
}


@dataclass(frozen=True)
class NSCredentials:
    """TBA credentials for one NetSuite account.

    Attributes:
        account_id: NetSuite account id (e.g. "1234567_SB1"); also the OAuth realm
        consumer_key: Integration record consumer key
        consumer_secret: Integration record consumer secret
        token_id: Access token id
        token_secret: Access token secret
    """
    account_id: str
    consumer_key: str
    consumer_secret: str
    token_id: str
    token_secret: str

    def missing_fields(self) -> List[str]:
        return [f.name for f in fields(self) if not getattr(self, f.name)]

    def validate(self) -> "NSCredentials":
        """Raise NSConfigurationError unless every field is present."""
        missing = self.missing_fields()
        if missing:
            names = ", ".join(ENV_VARS[name] for name in missing)
            raise NSConfigurationError(
                f"Missing NetSuite configuration: {names}. "
                "Ensure all NETSUITE_* credentials are set."
            )
        return self

    @classmethod
    def from_env(cls, load_env_file: bool = True) -> "NSCredentials":
        """Load credentials from NETSUITE_* environment variables.

        A ``.env`` file at the project root is loaded first when present;
        variables already in the environment win.

        Raises:
            NSConfigurationError: If any credential is missing
        """
        env_path = REPO_ROOT / ".env"
        if load_env_file and env_path.exists():
            load_dotenv(env_path)

        values = {name: os.getenv(var, "").strip() for name, var in ENV_VARS.items()}
        return cls(**values).validate()

    @classmethod
    def from_mapping(cls, data: Dict[str, str]) -> "NSCredentials":
        """Build credentials from an ERPConfig.auth_config mapping."""
        values = {name: str(data.get(name) or "").strip() for name in ENV_VARS}
        return cls(**values).validate()

    def __repr__(self) -> str:
        # Secrets stay out of logs and tracebacks
        return f"NSCredentials(account_id={self.account_id!r}, consumer_key=***, token_id=***)"


@dataclass(frozen=True)
class SignedRequest:
    """A method/URL pair with its one-time Authorization header."""
    method: str
    url: str
    authorization: str


# =============================================================================
# RFC 5849 primitives
# =============================================================================

def percent_encode(value: str) -> str:
    """Percent-encode per RFC 3986 as required by RFC 5849 section 3.6.

    Only unreserved characters (ALPHA, DIGIT, ``-._~``) pass through, so
    ``! * ' ( )`` are escaped as well.
    """
    return urllib.parse.quote(str(value), safe="~")


def split_url(url: str) -> Tuple[str, List[Tuple[str, str]]]:
    """Split a URL into its base string URI and its decoded query parameters."""
    parts = urllib.parse.urlsplit(url)
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    port = parts.port
    if port and not ((scheme == "https" and port == 443) or (scheme == "http" and port == 80)):
        host = f"{host}:{port}"
    base_url = f"{scheme}://{host}{parts.path or '/'}"
    query_params = urllib.parse.parse_qsl(parts.query, keep_blank_values=True)
    return base_url, query_params


def normalize_parameters(params: List[Tuple[str, str]]) -> str:
    """Encode, sort by key then value, and join as ``k=v&k=v``."""
    encoded = sorted((percent_encode(k), percent_encode(v)) for k, v in params)
    return "&".join(f"{k}={v}" for k, v in encoded)


def signature_base_string(method: str, base_url: str, params: List[Tuple[str, str]]) -> str:
    """Build ``METHOD&enc(base URL)&enc(normalized params)``."""
    return "&".join([
        method.upper(),
        percent_encode(base_url),
        percent_encode(normalize_parameters(params)),
    ])


def hmac_sha256_signature(base_string: str, consumer_secret: str, token_secret: str) -> str:
    """HMAC-SHA256 the base string with ``enc(consumer)&enc(token)``; base64 result."""
    key = f"{percent_encode(consumer_secret)}&{percent_encode(token_secret)}"
    digest = hmac.new(key.encode("utf-8"), base_string.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def generate_nonce() -> str:
    """16 random bytes, hex encoded."""
    return secrets.token_hex(16)


# =============================================================================
# Signer
# =============================================================================

class OAuth1Signer:
    """Signs NetSuite REST requests with Token-Based Authentication.

    Usage:
        signer = OAuth1Signer(NSCredentials.from_env())
        signed = signer.sign("POST", "https://.../query/v1/suiteql?limit=10&offset=0")
        headers = {"Authorization": signed.authorization}

    nonce and timestamp can be passed explicitly, which makes the header a
    pure function of its inputs.
    """

    def __init__(
        self,
        credentials: NSCredentials,
        nonce_factory: Callable[[], str] = generate_nonce,
        clock: Callable[[], float] = time.time,
    ):
        self.credentials = credentials.validate()
        self._nonce_factory = nonce_factory
        self._clock = clock

    def oauth_parameters(self, nonce: str, timestamp: str) -> Dict[str, str]:
        return {
            "oauth_consumer_key": self.credentials.consumer_key,
            "oauth_nonce": nonce,
            "oauth_signature_method": SIGNATURE_METHOD,
            "oauth_timestamp": timestamp,
            "oauth_token": self.credentials.token_id,
            "oauth_version": OAUTH_VERSION,
        }

    def compute_signature(self, method: str, url: str, nonce: str, timestamp: str) -> str:
        base_url, query_params = split_url(url)
        params = list(self.oauth_parameters(nonce, timestamp).items()) + query_params
        base_string = signature_base_string(method, base_url, params)
        return hmac_sha256_signature(
            base_string,
            self.credentials.consumer_secret,
            self.credentials.token_secret,
        )

    def authorization_header(
        self,
        method: str,
        url: str,
        nonce: Optional[str] = None,
        timestamp: Optional[str] = None,
    ) -> str:
        """Get the Authorization header value for one request."""
        nonce = nonce or self._nonce_factory()
        timestamp = timestamp or str(int(self._clock()))

        header_params = self.oauth_parameters(nonce, timestamp)
        header_params["oauth_signature"] = self.compute_signature(method, url, nonce, timestamp)

        pairs = ", ".join(
            f'{percent_encode(key)}="{percent_encode(header_params[key])}"'
            for key in sorted(header_params)
        )
        return f'OAuth realm="{self.credentials.account_id}", {pairs}'

    def sign(self, method: str, url: str, **kwargs) -> SignedRequest:
        return SignedRequest(
            method=method.upper(),
            url=url,
            authorization=self.authorization_header(method, url, **kwargs),
        )


class NSAuthProvider:
    """Authentication provider for NetSuite.

    Credentials are resolved once, on the first signed request, and reused
    for the lifetime of the provider. Resolution failures are not cached, so
    every operation attempted without configuration fails the same way.

    Usage:
        auth = NSAuthProvider()                      # reads NETSUITE_* lazily
        auth = NSAuthProvider(NSCredentials(...))    # explicit
        header = auth.get_authorization_header("GET", url)
    """

    def __init__(
        self,
        credentials: Optional[NSCredentials] = None,
        credentials_loader: Callable[[], NSCredentials] = NSCredentials.from_env,
    ):
        self._credentials = credentials
        self._credentials_loader = credentials_loader
        self._signer: Optional[OAuth1Signer] = None

    @property
    def credentials(self) -> NSCredentials:
        """Resolved credentials.

        Raises:
            NSConfigurationError: If credentials are missing or incomplete
        """
        if self._credentials is None:
            self._credentials = self._credentials_loader()
        return self._credentials

    @property
    def signer(self) -> OAuth1Signer:
        if self._signer is None:
            self._signer = OAuth1Signer(self.credentials)
        return self._signer

    def sign(self, method: str, url: str) -> SignedRequest:
        """Sign one request with a fresh nonce and timestamp."""
        return self.signer.sign(method, url)

    def get_authorization_header(self, method: str, url: str) -> str:
        """Get a fresh Authorization header for the request."""
        return self.sign(method, url).authorization

"""NetSuite HTTP Client.

Low-level HTTP client for SuiteTalk REST calls.
Handles request signing, response normalization and SuiteQL paging.

The client never retries and never raises on an HTTP status for record
calls: 401/403/404/5xx mean different things to different callers, so the
status is surfaced as-is. SuiteQL is the exception - a failed query page is
raised as NSQueryError.
"""

import json
import os
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import aiohttp

from core.observability.logging import get_logger, log_erp_call

logger = get_logger(__name__)

SUCCESS_STATUSES = (200, 201, 204)
BODY_PREVIEW_CHARS = 300


class NSApiError(Exception):
    """Base exception for NetSuite API errors."""
    def __init__(self, message: str, status_code: int = 0, response_body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class NSConfigurationError(NSApiError):
    """Credentials or settings are missing; fatal, raised before any network call."""
    pass


class NSQueryError(NSApiError):
    """SuiteQL query returned a non-success status."""
    pass


class NSRecordError(NSApiError):
    """A record create/attach call returned a non-success status."""
    pass


def preview_body(data: Any, limit: int = BODY_PREVIEW_CHARS) -> str:
    """First ``limit`` characters of a response body, for errors and logs."""
    if data is None:
        return ""
    text = data if isinstance(data, str) else json.dumps(data, default=str)
    return text[:limit]


def is_json_media_type(content_type: str) -> bool:
    """True for application/json and any structured "+json" media type."""
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


@dataclass
class NSApiConfig:
    """Configuration for the NetSuite API client."""
    domain: str = "suitetalk.api.netsuite.com"
    timeout_seconds: float = 30.0
    query_page_size: int = 1000
    base_url: Optional[str] = None  # full REST root; overrides the account host

    def get_base_url(self, account_id: str) -> str:
        """REST root for an account; "_" in the account id becomes "-" in the host."""
        if self.base_url:
            return self.base_url.rstrip("/")
        host_account = account_id.lower().replace("_", "-")
        return f"https://{host_account}.{self.domain}/services/rest"

    @classmethod
    def from_env(cls) -> "NSApiConfig":
        config = cls()
        if os.getenv("NETSUITE_DOMAIN"):
            config.domain = os.environ["NETSUITE_DOMAIN"]
        if os.getenv("NETSUITE_TIMEOUT_SECONDS"):
            config.timeout_seconds = float(os.environ["NETSUITE_TIMEOUT_SECONDS"])
        return config


@dataclass
class NSResponse:
    """Normalized response: status, parsed body and Location header."""
    status: int
    data: Any = None
    location: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in SUCCESS_STATUSES


@dataclass
class QueryPage:
    """One page of SuiteQL results."""
    items: List[Dict[str, Any]] = field(default_factory=list)
    total_results: int = 0
    has_more: bool = False


class NSApiClient:
    """HTTP client for the NetSuite REST API.

    Provides:
    - Signed API calls (a fresh OAuth header per request)
    - JSON / text response normalization
    - One-page SuiteQL queries

    Usage:
        client = NSApiClient(auth_provider, NSApiConfig())
        await client.connect()
        response = await client.request("GET", "/record/v1/metadata-catalog/")
        page = await client.suiteql("SELECT id FROM vendor", limit=10)
    """

    def __init__(self, auth_provider, api_config: Optional[NSApiConfig] = None):
        """Initialize API client.

        Args:
            auth_provider: NSAuthProvider that signs each request
            api_config: API configuration
        """
        from connectors.netsuite.ns_auth import NSAuthProvider

        self.auth_provider: NSAuthProvider = auth_provider
        self.api_config = api_config or NSApiConfig()
        self._session: Optional[aiohttp.ClientSession] = None

    async def connect(self) -> bool:
        """Initialize the HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return True

    async def disconnect(self) -> None:
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    def build_url(self, path: str) -> str:
        """Build the full URL for a path under /services/rest."""
        base = self.api_config.get_base_url(self.auth_provider.credentials.account_id)
        return f"{base}{path}"

    def _get_headers(self, method: str, url: str) -> Dict[str, str]:
        return {
            "Authorization": self.auth_provider.sign(method, url).authorization,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[Dict[str, Any]],
        follow_redirects: bool,
    ) -> NSResponse:
        await self.connect()
        timeout = aiohttp.ClientTimeout(total=self.api_config.timeout_seconds)

        async with self._session.request(
            method,
            url,
            headers=headers,
            json=body,
            allow_redirects=follow_redirects,
            timeout=timeout,
        ) as response:
            text = await response.text()
            if is_json_media_type(response.headers.get("Content-Type", "")):
                data = json.loads(text) if text else None
            else:
                data = text
            return NSResponse(
                status=response.status,
                data=data,
                location=response.headers.get("Location"),
            )

    async def request(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        follow_redirects: bool = True,
    ) -> NSResponse:
        """Make one signed request.

        Args:
            method: HTTP method
            path: Path under /services/rest, may include a query string
            body: JSON body, sent only for POST/PUT/PATCH
            follow_redirects: Disable for record creation so that the
                Location header of the new record stays readable

        Returns:
            NSResponse with status, parsed body and Location header

        Raises:
            NSConfigurationError: Credentials missing (before any network call)
            aiohttp.ClientError / asyncio.TimeoutError: Transport failures
        """
        method = method.upper()
        url = self.build_url(path)
        headers = self._get_headers(method, url)
        if method not in ("POST", "PUT", "PATCH"):
            body = None

        started = time.perf_counter()
        response = await self._send(method, url, headers, body, follow_redirects)
        log_erp_call(method, path, response.status, (time.perf_counter() - started) * 1000)
        return response

    async def suiteql(self, query: str, limit: int = 1000, offset: int = 0) -> QueryPage:
        """Run one page of a SuiteQL query.

        Args:
            query: SuiteQL statement
            limit: Maximum rows in this page
            offset: Row offset of this page

        Returns:
            QueryPage with items, total_results and has_more

        Raises:
            NSQueryError: Non-success status, or a success body that is not a
                JSON object (body truncated to 300 chars)
        """
        path = f"/query/v1/suiteql?limit={limit}&offset={offset}"
        url = self.build_url(path)
        headers = self._get_headers("POST", url)
        headers["Prefer"] = "transient"

        started = time.perf_counter()
        response = await self._send("POST", url, headers, {"q": query}, True)
        log_erp_call("POST", "/query/v1/suiteql", response.status,
                     (time.perf_counter() - started) * 1000, limit=limit, offset=offset)

        if not 200 <= response.status < 300:
            body = preview_body(response.data)
            raise NSQueryError(
                f"SuiteQL failed ({response.status}): {body}",
                response.status,
                body,
            )

        if not isinstance(response.data, dict):
            body = preview_body(response.data)
            raise NSQueryError(
                f"SuiteQL returned a non-JSON body ({response.status}): {body}",
                response.status,
                body,
            )

        data = response.data
        return QueryPage(
            items=data.get("items") or [],
            total_results=data.get("totalResults") or 0,
            has_more=bool(data.get("hasMore")),
        )


# =============================================================================
# Identifier resolution
# =============================================================================
# NetSuite reports a created record either through the Location header
# (typically on 204) or through the body. Each strategy returns an optional
# id; the first hit wins.

_TRAILING_ID = re.compile(r"/(\d+)/?$")


def id_from_location(response: NSResponse) -> Optional[str]:
    """Trailing numeric path segment of the Location header."""
    if not response.location:
        return None
    path = response.location.split("?", 1)[0].split("#", 1)[0]
    match = _TRAILING_ID.search(path)
    return match.group(1) if match else None


def id_from_body(key: str):
    def strategy(response: NSResponse) -> Optional[str]:
        if isinstance(response.data, dict) and response.data.get(key) not in (None, ""):
            return str(response.data[key])
        return None
    strategy.__name__ = f"id_from_body_{key}"
    return strategy


DEFAULT_ID_STRATEGIES = (id_from_location, id_from_body("id"), id_from_body("internalId"))


def resolve_record_id(response: NSResponse, strategies=DEFAULT_ID_STRATEGIES) -> Optional[str]:
    """Try each extraction strategy in order; return the first id found."""
    for strategy in strategies:
        record_id = strategy(response)
        if record_id:
            return record_id
    return None


async def best_effort(coro, description: str, default=None):
    """Await a side call whose failure must not affect the primary result.

    Exceptions are logged as warnings and replaced with ``default``.
    """
    try:
        return await coro
    except Exception as e:
        logger.warning(f"{description} failed: {e}", extra_fields={"error_type": type(e).__name__})
        return default

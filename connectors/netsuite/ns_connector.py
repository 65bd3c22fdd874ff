"""NetSuite ERP Connector.

Implements the ERPConnector interface for NetSuite via SuiteTalk REST with
Token-Based Authentication.
"""

from typing import Any, Callable, Dict, List, Optional, TypeVar

from connectors.erp_base import (
    AttachmentOutcome,
    ConnectionTestResult,
    CreatedOrderResult,
    ERPConfig,
    ERPConnectionStatus,
    ERPConnector,
    LedgerAccountRef,
    PurchaseOrderInput,
    SourceFile,
    VendorRef,
    register_connector,
)
from connectors.netsuite.ns_attachments import AttachmentConfig, AttachmentWorkflow
from connectors.netsuite.ns_auth import NSAuthProvider, NSCredentials
from connectors.netsuite.ns_cache import ACCOUNT_CACHE_TTL, VENDOR_CACHE_TTL, TTLCache
from connectors.netsuite.ns_client import NSApiClient, NSApiConfig
from connectors.netsuite.ns_models import NSAccountRow, NSVendorRow
from connectors.netsuite.ns_purchase_order import PurchaseOrderFormConfig, PurchaseOrderWorkflow
from core.observability.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

VENDOR_QUERY = "SELECT id, entityId, companyName FROM vendor WHERE isInactive = 'F' ORDER BY companyName"
ACCOUNT_QUERY = "SELECT id, acctnumber, acctname, accttype FROM account WHERE isinactive = 'F' ORDER BY acctnumber"

METADATA_CATALOG_PATH = "/record/v1/metadata-catalog/"


@register_connector("netsuite")
class NetSuiteConnector(ERPConnector):
    """NetSuite connector implementation.

    Required configuration (auth_config, or NETSUITE_* environment variables
    when auth_config is empty):
    - account_id, consumer_key, consumer_secret, token_id, token_secret

    Optional configuration (custom_settings):
    - domain, timeout_seconds: API client settings
    - custom_form_id, subsidiary_id, default_account_id,
      approval_routing_program_id, memo_prefix: purchase order form
    - folder_name, record_type, description_prefix: attachments
    """

    def __init__(
        self,
        config: ERPConfig,
        api_client: Optional[NSApiClient] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        super().__init__(config)
        settings = config.custom_settings

        if api_client is None:
            if config.auth_config:
                auth_provider = NSAuthProvider(NSCredentials.from_mapping(config.auth_config))
            else:
                auth_provider = NSAuthProvider()

            api_config = NSApiConfig.from_env()
            if settings.get("domain"):
                api_config.domain = settings["domain"]
            if settings.get("timeout_seconds"):
                api_config.timeout_seconds = float(settings["timeout_seconds"])
            if config.base_url:
                api_config.base_url = config.base_url
            api_client = NSApiClient(auth_provider, api_config)
        self._api_client = api_client

        cache_kwargs = {"clock": clock} if clock else {}
        self._vendor_cache: TTLCache[List[VendorRef]] = TTLCache("vendors", **cache_kwargs)
        self._account_cache: TTLCache[List[LedgerAccountRef]] = TTLCache("accounts", **cache_kwargs)
        self._folder_cache: TTLCache[str] = TTLCache("attachment_folder", **cache_kwargs)

        self.purchase_orders = PurchaseOrderWorkflow(
            self._api_client,
            PurchaseOrderFormConfig.from_settings(settings),
        )
        self.attachments = AttachmentWorkflow(
            self._api_client,
            self._folder_cache,
            AttachmentConfig.from_settings(settings),
        )

    @classmethod
    def from_env(cls, **custom_settings) -> "NetSuiteConnector":
        """Build a connector whose credentials come from NETSUITE_* variables."""
        return cls(ERPConfig(connector_type="netsuite", custom_settings=custom_settings))

    @property
    def api_client(self) -> NSApiClient:
        return self._api_client

    # =========================================================================
    # Connection Management
    # =========================================================================

    async def connect(self) -> bool:
        """Open the HTTP session."""
        success = await self._api_client.connect()
        self._connection_status = (
            ERPConnectionStatus.CONNECTED if success else ERPConnectionStatus.FAILED
        )
        return success

    async def disconnect(self) -> None:
        """Close the HTTP session."""
        await self._api_client.disconnect()
        self._connection_status = ERPConnectionStatus.DISCONNECTED

    async def test_connection(self) -> ConnectionTestResult:
        """GET the metadata catalog, a lightweight read-only call."""
        try:
            result = await self._api_client.request("GET", METADATA_CATALOG_PATH)
        except Exception as e:
            logger.warning(f"NetSuite connection test failed: {e}")
            return ConnectionTestResult(success=False, message=f"Connection error: {e}")

        if result.status == 200:
            return ConnectionTestResult(
                success=True,
                message="Successfully connected to NetSuite!",
                details={
                    "status": result.status,
                    "recordTypes": "OK" if isinstance(result.data, (dict, list)) else result.data,
                },
            )
        if result.status in (401, 403):
            return ConnectionTestResult(
                success=False,
                message=f"Authentication failed ({result.status}). Check your OAuth credentials.",
                details=result.data,
            )
        return ConnectionTestResult(
            success=False,
            message=f"Unexpected response: {result.status}",
            details=result.data,
        )

    # =========================================================================
    # Reference Data
    # =========================================================================

    async def _scan(self, query: str, project: Callable[[Dict[str, Any]], T]) -> List[T]:
        """Page through a SuiteQL query, projecting every row."""
        rows: List[T] = []
        page_size = self._api_client.api_config.query_page_size
        offset = 0
        has_more = True

        while has_more:
            page = await self._api_client.suiteql(query, limit=page_size, offset=offset)
            rows.extend(project(item) for item in page.items)
            has_more = page.has_more
            offset += page_size

        return rows

    async def _fetch_vendors(self) -> List[VendorRef]:
        vendors = await self._scan(VENDOR_QUERY, lambda row: NSVendorRow.model_validate(row).to_ref())
        logger.info(f"Fetched {len(vendors)} vendors from NetSuite")
        return vendors

    async def _fetch_accounts(self) -> List[LedgerAccountRef]:
        accounts = await self._scan(ACCOUNT_QUERY, lambda row: NSAccountRow.model_validate(row).to_ref())
        logger.info(f"Fetched {len(accounts)} ledger accounts from NetSuite")
        return accounts

    async def get_vendors(self) -> List[VendorRef]:
        """List all active vendors (cached for 30 minutes)."""
        return await self._vendor_cache.get_or_populate(self._fetch_vendors, ttl=VENDOR_CACHE_TTL)

    async def get_accounts(self) -> List[LedgerAccountRef]:
        """List all active ledger accounts (cached for 30 minutes)."""
        return await self._account_cache.get_or_populate(self._fetch_accounts, ttl=ACCOUNT_CACHE_TTL)

    # =========================================================================
    # Purchase Orders
    # =========================================================================

    async def create_purchase_order(
        self,
        order: PurchaseOrderInput,
        dry_run: bool = True,
    ) -> CreatedOrderResult:
        """Create a purchase order in NetSuite (or dry-run to validate the payload)."""
        logger.info(
            f"Purchase order requested (dry_run={dry_run})",
            extra_fields={"vendor_id": order.vendor_id, "amount": str(order.amount)},
        )
        return await self.purchase_orders.create(order, dry_run=dry_run)

    async def upload_and_attach_files(
        self,
        internal_id: str,
        display_number: Optional[str],
        files: List[SourceFile],
    ) -> AttachmentOutcome:
        """Upload files to the File Cabinet and attach them to the purchase order."""
        return await self.attachments.upload_and_attach_files(internal_id, display_number, files)

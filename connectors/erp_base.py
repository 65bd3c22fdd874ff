"""Abstract ERP Connector Interface.

This module defines the abstract interface that all ERP connectors must implement.
It is intentionally ERP-agnostic - no NetSuite specifics here.

Connectors implement this interface to:
1. Probe connectivity and authentication with their ERP
2. List reference data (vendors, ledger accounts) used to code purchase orders
3. Create purchase orders (dry run or live)
4. Upload source documents and attach them to created records

Key Design Principles:
- All methods return NORMALIZED objects (VendorRef, CreatedOrderResult, etc.)
- HTTP routes depend ONLY on this interface
- ERP-specific implementations live in connector subfolders
- Mutating operations never raise across this boundary; they return results
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class ERPConnectionStatus(str, Enum):
    """Connection status to ERP system."""
    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"
    FAILED = "FAILED"


# =============================================================================
# Normalized Reference Models (ERP-Agnostic)
# =============================================================================
# These models are what HTTP routes see.
# They are projections of ERP records keyed by the ERP's immutable internal id.

class VendorRef(BaseModel):
    """Normalized vendor reference.

    IMPORTANT: Both id (API identifier) and entity_id (human code) are stored.
    - id: Use for API calls and for the purchase order vendor reference
    - entity_id: Display to users (e.g., "ACME-001")
    """
    id: str = Field(..., description="ERP internal ID for API calls")
    entity_id: str = Field(default="", description="Vendor code for display")
    company_name: str = Field(default="", description="Vendor display name")

    class Config:
        frozen = True


class LedgerAccountRef(BaseModel):
    """Normalized general-ledger account reference.

    Used to force the ledger account on each purchase order expense line.
    """
    id: str = Field(..., description="ERP internal ID for API calls")
    number: str = Field(default="", description="Account number for display (e.g., '6100')")
    name: str = Field(default="", description="Account name (e.g., 'Room & Board')")

    class Config:
        frozen = True


# =============================================================================
# Purchase Order Models (Normalized input)
# =============================================================================

class PurchaseOrderLine(BaseModel):
    """A single expense line on a purchase order."""
    item_id: str = Field(default="", alias="itemId", description="Kept for reference only")
    item_name: Optional[str] = Field(default=None, alias="itemName")
    description: str = ""
    department_id: str = Field(..., alias="departmentId")
    class_id: str = Field(..., alias="classId")
    account_id: Optional[str] = Field(
        default=None,
        alias="accountId",
        description="Ledger account for this line (form default when omitted)",
    )
    quantity: Decimal = Field(default=Decimal("1"))
    rate: Decimal = Field(default=Decimal("0"))
    amount: Decimal

    class Config:
        populate_by_name = True


class PurchaseOrderInput(BaseModel):
    """Normalized purchase order input.

    This is the input for create_purchase_order(). The vendor is referenced by
    internal id when known; the free-text name is only a fallback and is not
    reliable for automated creation.
    """
    vendor_name: str = Field(default="", alias="vendorName")
    vendor_id: Optional[str] = Field(default=None, alias="vendorId")
    vendor_account: str = Field(default="", alias="vendorAccount")

    # Client / program metadata
    client_id: str = Field(default="", alias="clientId")
    client_name: str = Field(default="", alias="clientName")
    region: str = ""
    program_category: str = Field(default="", alias="programCategory")
    notes: str = Field(default="", alias="tfaNotes", description="Free text appended to the header memo")

    # Optional list-valued custom fields; omitted from the payload when not supplied
    client_type_id: Optional[str] = Field(default=None, alias="clientTypeId")
    client_category_id: Optional[str] = Field(default=None, alias="clientCategoryId")
    financial_assistance_type_id: Optional[str] = Field(default=None, alias="financialAssistanceTypeId")
    assistance_month_id: Optional[str] = Field(default=None, alias="assistanceMonthId")

    amount: Decimal
    memo: str = Field(default="", description="Suffix for every expense line memo")

    line_items: List[PurchaseOrderLine] = Field(..., alias="lineItems", min_length=1)

    class Config:
        populate_by_name = True

    @property
    def lines_total(self) -> Decimal:
        """Calculate total from lines."""
        return sum((line.amount for line in self.line_items), Decimal("0"))


class SourceFile(BaseModel):
    """A source document already retrieved as bytes by the caller."""
    file_name: str
    content: bytes
    content_type: str = "application/octet-stream"


# =============================================================================
# Result Models
# =============================================================================

class ConnectionTestResult(BaseModel):
    """Outcome of a connectivity probe."""
    success: bool
    message: str
    details: Optional[Any] = None


class AttachmentOutcome(BaseModel):
    """Outcome of one upload-and-attach batch.

    Never discarded, even on total failure: the purchase order already exists.
    """
    attached_count: int = 0
    failed_count: int = 0
    errors: List[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return self.attached_count + self.failed_count

    def summary(self) -> str:
        """Human-readable summary suitable for appending to a result message."""
        if self.total == 0:
            return ""
        if self.failed_count == 0:
            return f"{self.attached_count} attachment(s) uploaded."
        return (
            f"{self.attached_count} of {self.total} attachment(s) uploaded; "
            f"{self.failed_count} failed."
        )


class CreatedOrderResponse(BaseModel):
    """ERP-side details of a purchase order creation call."""
    status: int
    raw_data: Optional[Any] = None
    location_header: Optional[str] = None
    internal_id: Optional[str] = None
    display_number: Optional[str] = None

    @property
    def display_id(self) -> Optional[str]:
        """Transaction number when resolved, otherwise the internal id."""
        return self.display_number or self.internal_id


class CreatedOrderResult(BaseModel):
    """Result of create_purchase_order().

    success reflects only the purchase order itself; attachment problems are
    reported in the message and in attachments, never by flipping success.
    """
    success: bool
    message: str
    payload: Optional[Dict[str, Any]] = None
    response: Optional[CreatedOrderResponse] = None
    attachments: Optional[AttachmentOutcome] = None

    def with_attachments(self, outcome: AttachmentOutcome) -> "CreatedOrderResult":
        """Return a copy with the attachment outcome merged into the message."""
        summary = outcome.summary()
        message = f"{self.message} {summary}" if summary else self.message
        return self.model_copy(update={"message": message, "attachments": outcome})


# =============================================================================
# Connector Configuration
# =============================================================================

@dataclass
class ERPConfig:
    """Configuration for an ERP connector.

    Generic configuration that can be extended by specific connectors.
    """
    connector_type: str                     # "netsuite", ...
    environment: str = "production"         # "production", "sandbox"
    base_url: Optional[str] = None          # ERP API endpoint override

    # Authentication (connector-specific); empty means "load from environment"
    auth_config: Dict[str, Any] = field(default_factory=dict)

    # ERP-specific settings (form ids, folder names, timeouts, ...)
    custom_settings: Dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Abstract Connector Interface
# =============================================================================

class ERPConnector(ABC):
    """Abstract base class for ERP connectors.

    All ERP-specific connectors must implement this interface.
    This keeps HTTP routes ERP-agnostic.

    Implementations:
    - connectors/netsuite/ns_connector.py
    """

    def __init__(self, config: ERPConfig):
        """Initialize connector with configuration."""
        self.config = config
        self._connection_status = ERPConnectionStatus.DISCONNECTED

    # =========================================================================
    # Connection Management
    # =========================================================================

    @abstractmethod
    async def connect(self) -> bool:
        """Open the underlying HTTP session.

        Returns:
            True if the session is ready
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the underlying HTTP session."""
        pass

    @abstractmethod
    async def test_connection(self) -> ConnectionTestResult:
        """Probe connectivity and authentication with a read-only call.

        Never raises; every failure is described in the result.
        """
        pass

    @property
    def connection_status(self) -> ERPConnectionStatus:
        """Get current connection status."""
        return self._connection_status

    async def __aenter__(self) -> "ERPConnector":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect()

    # =========================================================================
    # Reference Data (exceptions propagate; lookups are read-only)
    # =========================================================================

    @abstractmethod
    async def get_vendors(self) -> List[VendorRef]:
        """List all active vendors."""
        pass

    @abstractmethod
    async def get_accounts(self) -> List[LedgerAccountRef]:
        """List all active ledger accounts."""
        pass

    # =========================================================================
    # Purchase Orders (never raise)
    # =========================================================================

    @abstractmethod
    async def create_purchase_order(
        self,
        order: PurchaseOrderInput,
        dry_run: bool = True,
    ) -> CreatedOrderResult:
        """Create a purchase order, or only build its payload when dry_run is set.

        Args:
            order: Normalized purchase order input
            dry_run: When True (the default) nothing is sent to the ERP

        Returns:
            CreatedOrderResult; failures are described, not raised
        """
        pass

    @abstractmethod
    async def upload_and_attach_files(
        self,
        internal_id: str,
        display_number: Optional[str],
        files: List[SourceFile],
    ) -> AttachmentOutcome:
        """Upload files and attach each one to an existing purchase order.

        Best-effort batch: one file failing does not stop the others.
        """
        pass

    async def create_purchase_order_with_attachments(
        self,
        order: PurchaseOrderInput,
        files: List[SourceFile],
        dry_run: bool = True,
    ) -> CreatedOrderResult:
        """Create a purchase order and, when live and successful, attach files.

        The attachment summary is merged into the result message; attachment
        failures never change the result's success flag.
        """
        result = await self.create_purchase_order(order, dry_run=dry_run)
        if dry_run or not result.success or not files:
            return result
        if not result.response or not result.response.internal_id:
            return result.with_attachments(AttachmentOutcome(
                failed_count=len(files),
                errors=["Purchase order id could not be resolved; files were not attached"],
            ))

        outcome = await self.upload_and_attach_files(
            result.response.internal_id,
            result.response.display_number,
            files,
        )
        return result.with_attachments(outcome)

    # -------------------------------------------------------------------------
    # Utilities
    # -------------------------------------------------------------------------

    def get_connector_name(self) -> str:
        """Get the name of this connector."""
        return self.config.connector_type

    def get_environment(self) -> str:
        """Get the environment (production/sandbox)."""
        return self.config.environment


# =============================================================================
# Connector Factory
# =============================================================================

_connector_registry: Dict[str, type] = {}


def register_connector(connector_type: str):
    """Decorator to register a connector implementation."""
    def decorator(cls):
        _connector_registry[connector_type] = cls
        return cls
    return decorator


def create_connector(config: ERPConfig) -> ERPConnector:
    """Create a connector instance from configuration.

    Args:
        config: ERPConfig with connector_type specified

    Returns:
        Configured connector instance

    Raises:
        ValueError: If connector_type is not registered
    """
    connector_type = config.connector_type.lower()

    if connector_type not in _connector_registry:
        available = list(_connector_registry.keys())
        raise ValueError(
            f"Unknown connector type: {connector_type}. "
            f"Available: {available}"
        )

    connector_class = _connector_registry[connector_type]
    return connector_class(config)


def list_available_connectors() -> List[str]:
    """List all registered connector types."""
    return list(_connector_registry.keys())

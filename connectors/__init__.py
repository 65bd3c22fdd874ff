"""ERP Connectors - Pluggable ERP system integrations.

This package contains the abstract ERP interface and concrete implementations
for specific ERP systems (NetSuite, ...).

This package handles:
- ERP-specific authentication (request signing)
- Data transformation (normalized input -> ERP record payload)
- API communication
- Reference-data lookups and record creation

Key Design Principle:
- HTTP routes depend ONLY on the ERPConnector interface
- All methods return NORMALIZED types (VendorRef, CreatedOrderResult, etc.)
- No NetSuite-specific types should leak through the interface

To add a new ERP:
1. Create a new folder (e.g., sap/)
2. Implement ERPConnector interface
3. Register using @register_connector decorator
"""

from connectors.erp_base import (
    # Core interface
    ERPConnector,
    ERPConfig,
    ERPConnectionStatus,

    # Normalized reference types (ERP-agnostic)
    VendorRef,
    LedgerAccountRef,

    # Purchase order types
    PurchaseOrderInput,
    PurchaseOrderLine,
    SourceFile,
    CreatedOrderResponse,
    CreatedOrderResult,
    AttachmentOutcome,
    ConnectionTestResult,

    # Factory functions
    create_connector,
    register_connector,
    list_available_connectors,
)

# Importing the package registers the "netsuite" connector type
import connectors.netsuite  # noqa: E402,F401

__all__ = [
    # Core interface
    "ERPConnector",
    "ERPConfig",
    "ERPConnectionStatus",

    # Normalized reference types
    "VendorRef",
    "LedgerAccountRef",

    # Purchase order types
    "PurchaseOrderInput",
    "PurchaseOrderLine",
    "SourceFile",
    "CreatedOrderResponse",
    "CreatedOrderResult",
    "AttachmentOutcome",
    "ConnectionTestResult",

    # Factory
    "create_connector",
    "register_connector",
    "list_available_connectors",
]

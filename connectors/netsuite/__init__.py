"""NetSuite Connector Package.

Implements the ERPConnector interface for NetSuite (SuiteTalk REST, TBA).
"""

from connectors.netsuite.ns_connector import NetSuiteConnector
from connectors.netsuite.ns_auth import (
    NSAuthProvider,
    NSCredentials,
    OAuth1Signer,
    SignedRequest,
    percent_encode,
)
from connectors.netsuite.ns_client import (
    NSApiClient,
    NSApiConfig,
    NSApiError,
    NSConfigurationError,
    NSQueryError,
    NSRecordError,
    NSResponse,
    QueryPage,
)
from connectors.netsuite.ns_cache import CacheEntry, TTLCache
from connectors.netsuite.ns_purchase_order import (
    PurchaseOrderFormConfig,
    PurchaseOrderWorkflow,
    build_purchase_order_payload,
)
from connectors.netsuite.ns_attachments import AttachmentConfig, AttachmentWorkflow

__all__ = [
    # Connector
    "NetSuiteConnector",
    # TBA auth
    "NSAuthProvider",
    "NSCredentials",
    "OAuth1Signer",
    "SignedRequest",
    "percent_encode",
    # HTTP client
    "NSApiClient",
    "NSApiConfig",
    "NSResponse",
    "QueryPage",
    # Errors
    "NSApiError",
    "NSConfigurationError",
    "NSQueryError",
    "NSRecordError",
    # Caching
    "CacheEntry",
    "TTLCache",
    # Workflows
    "PurchaseOrderFormConfig",
    "PurchaseOrderWorkflow",
    "build_purchase_order_payload",
    "AttachmentConfig",
    "AttachmentWorkflow",
]

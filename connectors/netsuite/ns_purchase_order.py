"""NetSuite purchase order creation.

Builds the purchaseOrder record payload from a normalized
PurchaseOrderInput and posts it (or only returns it, in dry-run mode).

Lines go on the ``expense`` sublist. The ``item`` sublist ignores the
account field for non-inventory items, so it cannot force a ledger account.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from connectors.erp_base import (
    CreatedOrderResponse,
    CreatedOrderResult,
    PurchaseOrderInput,
    PurchaseOrderLine,
)
from connectors.netsuite.ns_client import (
    NSApiClient,
    best_effort,
    preview_body,
    resolve_record_id,
)
from connectors.netsuite.ns_models import NSTransactionRow
from core.observability.logging import get_logger, log_workflow_event, with_correlation

logger = get_logger(__name__)

PURCHASE_ORDER_PATH = "/record/v1/purchaseOrder"


@dataclass
class PurchaseOrderFormConfig:
    """Tenant constants for the purchase request form.

    Attributes:
        custom_form_id: Custom form the record is created with
        subsidiary_id: Subsidiary every order is booked under
        default_account_id: Expense account for lines that carry none
        approval_routing_program_id: Value of the approval routing field
        memo_prefix: Leading text of the header memo
    """
    custom_form_id: str = "150"
    subsidiary_id: str = "14"
    default_account_id: str = "312"
    approval_routing_program_id: str = "1"
    memo_prefix: str = "SSVF TFA"

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> "PurchaseOrderFormConfig":
        known = {k: str(v) for k, v in settings.items() if k in cls.__dataclass_fields__}
        return cls(**known)


# Custom body field ids on the purchase request form
CLIENT_NAME_FIELD = "custbody10"
CLIENT_ID_FIELDS = ("custbody7", "custbody9")
APPROVAL_ROUTING_FIELD = "custbody10_2"
OPTIONAL_LIST_FIELDS = {
    "client_type_id": "custbody8",
    "client_category_id": "custbody13",
    "financial_assistance_type_id": "custbody11",
    "assistance_month_id": "custbody12",
}


def _as_number(value: Decimal) -> float:
    return float(value)


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _client_id_number(client_id: str) -> int:
    """Leading integer of the client id ("12abc" -> 12); 0 when there is none."""
    match = _LEADING_INT.match(client_id or "")
    return int(match.group(1)) if match else 0


def build_header_memo(order: PurchaseOrderInput, form: PurchaseOrderFormConfig) -> str:
    memo = (
        f"{form.memo_prefix} - {order.region} - {order.program_category} | "
        f"Client: {order.client_name} ({order.client_id})"
    )
    if order.notes:
        memo += f" | {order.notes}"
    return memo


def build_expense_line(
    line: PurchaseOrderLine,
    order_memo: str,
    form: PurchaseOrderFormConfig,
) -> Dict[str, Any]:
    line_memo = f"{line.description} - {order_memo}" if order_memo else line.description
    return {
        "account": {"id": line.account_id or form.default_account_id},
        "amount": _as_number(line.amount),
        "memo": line_memo,
        "department": {"id": line.department_id},
        "class": {"id": line.class_id},
    }


def build_purchase_order_payload(
    order: PurchaseOrderInput,
    form: Optional[PurchaseOrderFormConfig] = None,
) -> Dict[str, Any]:
    """Build the purchaseOrder record body.

    Optional list fields are left out entirely when not supplied; NetSuite
    treats an explicit null differently from an absent field.
    """
    form = form or PurchaseOrderFormConfig()

    if order.vendor_id:
        entity = {"id": order.vendor_id}
    else:
        entity = {"name": order.vendor_name}

    client_id = _client_id_number(order.client_id) if order.client_id else 0

    payload: Dict[str, Any] = {
        "customForm": {"id": form.custom_form_id},
        "entity": entity,
        "subsidiary": {"id": form.subsidiary_id},
        "memo": build_header_memo(order, form),
        CLIENT_NAME_FIELD: order.client_name or "",
    }
    for field_id in CLIENT_ID_FIELDS:
        payload[field_id] = client_id

    for attr, field_id in OPTIONAL_LIST_FIELDS.items():
        value = getattr(order, attr)
        if value:
            payload[field_id] = {"id": value}

    payload[APPROVAL_ROUTING_FIELD] = {"id": form.approval_routing_program_id}
    payload["expense"] = {
        "items": [build_expense_line(line, order.memo, form) for line in order.line_items],
    }
    return payload


class PurchaseOrderWorkflow:
    """Creates purchase orders; never raises to the caller.

    Usage:
        workflow = PurchaseOrderWorkflow(api_client)
        result = await workflow.create(order)                 # dry run
        result = await workflow.create(order, dry_run=False)  # live post
    """

    def __init__(self, client: NSApiClient, form: Optional[PurchaseOrderFormConfig] = None):
        self.client = client
        self.form = form or PurchaseOrderFormConfig()

    async def create(self, order: PurchaseOrderInput, dry_run: bool = True) -> CreatedOrderResult:
        """Create the purchase order, or only build its payload when dry_run is set."""
        payload = build_purchase_order_payload(order, self.form)

        if order.lines_total != order.amount:
            logger.warning(
                "Line amounts do not add up to the order amount",
                extra_fields={"amount": str(order.amount), "lines_total": str(order.lines_total)},
            )

        if dry_run:
            return CreatedOrderResult(
                success=True,
                message="Dry run - purchase order payload generated but NOT sent to NetSuite.",
                payload=payload,
            )

        with with_correlation(operation="create_purchase_order", record_type="purchaseOrder"):
            try:
                return await self._post(payload)
            except Exception as e:
                logger.exception(f"Purchase order creation failed: {e}")
                return CreatedOrderResult(
                    success=False,
                    message=f"Error creating purchase order: {e}",
                    payload=payload,
                )

    async def _post(self, payload: Dict[str, Any]) -> CreatedOrderResult:
        response = await self.client.request(
            "POST",
            PURCHASE_ORDER_PATH,
            payload,
            follow_redirects=False,
        )

        if not response.ok:
            logger.warning(
                f"NetSuite rejected purchase order: {response.status}",
                extra_fields={"body": preview_body(response.data)},
            )
            return CreatedOrderResult(
                success=False,
                message=f"NetSuite returned {response.status}",
                payload=payload,
                response=CreatedOrderResponse(status=response.status, raw_data=response.data),
            )

        internal_id = resolve_record_id(response)
        display_number = None
        if internal_id:
            display_number = await best_effort(
                self.lookup_display_number(internal_id),
                f"Transaction number lookup for purchase order {internal_id}",
            )

        order_response = CreatedOrderResponse(
            status=response.status,
            raw_data=response.data,
            location_header=response.location,
            internal_id=internal_id,
            display_number=display_number,
        )
        log_workflow_event("purchase_order_created", internal_id=internal_id, display_number=display_number)
        message = "Purchase Order created in NetSuite!"
        if order_response.display_id:
            message += f" (PO# {order_response.display_id})"
        return CreatedOrderResult(
            success=True,
            message=message,
            payload=payload,
            response=order_response,
        )

    async def lookup_display_number(self, internal_id: str) -> Optional[str]:
        """Resolve the human-facing transaction number (tranId) via SuiteQL."""
        if not internal_id.isdigit():
            return None
        page = await self.client.suiteql(
            f"SELECT tranId FROM transaction WHERE id = {internal_id}",
            limit=1,
        )
        if not page.items:
            return None
        row = NSTransactionRow.model_validate(page.items[0])
        return row.tranid or None

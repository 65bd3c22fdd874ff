"""NetSuite data models.

These are NetSuite-specific models that map to SuiteQL result rows.
They are separate from the normalized models in connectors/erp_base.py.

SuiteQL returns column names lower-cased regardless of how they were
written in the query.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from connectors.erp_base import LedgerAccountRef, VendorRef


class NSBaseModel(BaseModel):
    """Base model for SuiteQL rows."""

    class Config:
        populate_by_name = True
        extra = "ignore"

    @field_validator("*", mode="before")
    @classmethod
    def _ids_as_text(cls, value: Any) -> Any:
        # SuiteQL returns numeric ids as numbers or strings depending on column type
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(int(value)) if float(value).is_integer() else str(value)
        return value


class NSVendorRow(NSBaseModel):
    """Row of ``SELECT id, entityId, companyName FROM vendor``."""
    id: str
    entityid: Optional[str] = Field(None, alias="entityid")
    companyname: Optional[str] = Field(None, alias="companyname")

    def to_ref(self) -> VendorRef:
        return VendorRef(
            id=self.id,
            entity_id=self.entityid or "",
            company_name=self.companyname or self.entityid or "",
        )


class NSAccountRow(NSBaseModel):
    """Row of ``SELECT id, acctnumber, acctname, accttype FROM account``."""
    id: str
    acctnumber: Optional[str] = Field(None, alias="acctnumber")
    acctname: Optional[str] = Field(None, alias="acctname")
    accttype: Optional[str] = Field(None, alias="accttype")

    def to_ref(self) -> LedgerAccountRef:
        return LedgerAccountRef(
            id=self.id,
            number=self.acctnumber or "",
            name=self.acctname or "",
        )


class NSTransactionRow(NSBaseModel):
    """Row of ``SELECT tranId FROM transaction``."""
    tranid: Optional[str] = Field(None, alias="tranid")


class NSFolderRow(NSBaseModel):
    """Row of ``SELECT id FROM mediaitemfolder``."""
    id: str

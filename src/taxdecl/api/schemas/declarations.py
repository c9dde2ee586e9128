import re
import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from taxdecl.domain.enums import DeclarationStatus, TaxType

_YEAR_MONTH = re.compile(r"^\d{4}-\d{1,2}$")


class DeclarationCreateRequest(BaseModel):
    taxpayer_id: str
    legal_name: str
    period: date
    tax_type: TaxType
    income_amount: Decimal
    expense_amount: Decimal

    @field_validator("period", mode="before")
    @classmethod
    def accept_year_month(cls, v):
        if isinstance(v, str) and _YEAR_MONTH.match(v.strip()):
            year, month = v.strip().split("-")
            return f"{year}-{int(month):02d}-01"
        return v

    @field_validator("tax_type", mode="before")
    @classmethod
    def accept_code_or_name(cls, v):
        """Tax type may be sent as its numeric form code (1, 2, 3) or its name."""
        if isinstance(v, int) and not isinstance(v, bool):
            return TaxType.from_code(v)
        if isinstance(v, str):
            v = v.strip()
            if v.isdigit():
                return TaxType.from_code(int(v))
            return v.upper()
        return v


class DeclarationUpdateRequest(BaseModel):
    income_amount: Decimal
    expense_amount: Decimal


class DeclarationRejectRequest(BaseModel):
    remarks: str = Field(max_length=500)


class DeclarationResponse(BaseModel):
    id: uuid.UUID
    filing_number: str
    taxpayer_id: str
    legal_name: str
    period: date
    tax_type: TaxType
    income_amount: Decimal
    expense_amount: Decimal
    taxable_base: Decimal
    computed_tax: Decimal
    penalty: Decimal
    total_payable: Decimal
    status: DeclarationStatus
    due_date: datetime
    created_at: datetime
    filed_at: Optional[datetime] = None
    rejection_remarks: Optional[str] = None

    model_config = {"from_attributes": True}


class DeclarationSummary(BaseModel):
    id: uuid.UUID
    filing_number: str
    period: date
    tax_type: TaxType
    total_payable: Decimal
    status: DeclarationStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class DeclarationListResponse(BaseModel):
    items: list[DeclarationSummary]
    total: int
    page: int
    page_size: int
    total_pages: int

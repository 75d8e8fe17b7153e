"""Scope item and quotation models."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from tkr_receipts.config.settings import CompanyDetails

SUBTOTAL_PLACEHOLDER = "$[SUBTOTAL_PRICE]"
TAX_PLACEHOLDER = "$[TAX_AMOUNT]"
GRAND_TOTAL_PLACEHOLDER = "$[GRAND_TOTAL_PRICE]"


class _CamelModel(BaseModel):
    """Base for models exchanged with the AI service in camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ScopeItem(_CamelModel):
    """One extracted line of work from a construction document."""

    category: str = "other"
    item_description: str = ""
    quantity: str = ""
    material_or_finish: str = "N/A"
    dimensions: Optional[str] = None
    page_number: Optional[str] = None
    calculation_details: Optional[str] = None
    unit_of_measure: Optional[str] = None

    @field_validator("page_number", mode="before")
    @classmethod
    def stringify_page(cls, v: str | int | None) -> Optional[str]:
        """Page references may come back as numbers."""
        if v is None:
            return None
        return str(v)


class QuotationItem(_CamelModel):
    """Quotation line built from a scope item."""

    id: int | str
    category: str = ""
    description: str = ""
    quantity: str = ""
    material_or_finish: str = ""
    dimensions: Optional[str] = None
    page_ref: Optional[str] = None
    unit_of_measure: Optional[str] = None
    price_placeholder: str = ""
    unit_price: Optional[str] = None
    price: Optional[str] = None

    @field_validator("page_ref", mode="before")
    @classmethod
    def stringify_page(cls, v: str | int | None) -> Optional[str]:
        if v is None:
            return None
        return str(v)


class ClientInfo(_CamelModel):
    """Client block of a quotation."""

    name: str = "[Client Name]"
    address: str = "[Client Address]"
    date: str = ""
    project_id: str = ""


class CompanyInfo(CompanyDetails):
    """Issuer block of a quotation (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class QuotationStructure(_CamelModel):
    """Complete quotation content, as produced by the AI service or the fallback template."""

    title: str
    client_info: ClientInfo = Field(default_factory=ClientInfo)
    company_info: CompanyInfo = Field(default_factory=CompanyInfo)
    introduction_text: str = ""
    items: list[QuotationItem] = []
    subtotal_placeholder: str = SUBTOTAL_PLACEHOLDER
    tax_placeholder: Optional[str] = None
    total_price_placeholder: str = GRAND_TOTAL_PLACEHOLDER
    subtotal: Optional[str] = None
    tax_amount: Optional[str] = None
    grand_total: Optional[str] = None
    terms_and_conditions: list[str] = []
    conclusion_text: str = ""

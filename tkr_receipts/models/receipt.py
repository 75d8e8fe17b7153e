"""Receipt form and stored receipt models."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from tkr_receipts.config.settings import settings
from tkr_receipts.utils.dates import to_eastern_arabic

# Ad zone letters, in drawing order
AD_ZONES = ("A", "B", "C", "D", "E", "F")

UPPERCASE_FIELDS = (
    "received_from_name",
    "amount",
    "tent_number",
    "usage_purpose",
    "description",
    "notes",
    "receiver_name",
    "payer_name",
)


def _today() -> date:
    return date.today()


class ReceiptDetails(BaseModel):
    """Editable receipt form."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    day: str = Field(default_factory=lambda: f"{_today().day:02d}", pattern=r"^[\d٠-٩]{0,2}$")
    month: str = Field(
        default_factory=lambda: f"{_today().month:02d}", pattern=r"^[\d٠-٩]{0,2}$"
    )
    year: str = Field(default_factory=lambda: str(_today().year), pattern=r"^[\d٠-٩]{0,4}$")
    receipt_date: str = Field(default_factory=lambda: _today().isoformat())
    day_ar: str = Field(default_factory=lambda: to_eastern_arabic(_today().day, 2))
    month_ar: str = Field(default_factory=lambda: to_eastern_arabic(_today().month, 2))
    year_ar: str = Field(default_factory=lambda: to_eastern_arabic(_today().year, 4))

    received_from_name: str = ""
    amount: str = ""
    subscription_purpose: str = Field(
        default_factory=lambda: settings.receipt.default_subscription_purpose
    )
    tent_number: str = ""
    usage_purpose: str = ""
    description: str = ""

    electricity_available: bool = False
    chairs_available: bool = False
    table_available: bool = False

    ads_zone_a: bool = False
    ads_zone_b: bool = False
    ads_zone_c: bool = False
    ads_zone_d: bool = False
    ads_zone_e: bool = False
    ads_zone_f: bool = False

    ads_total_quantity: str = ""
    car_flags_count: str = ""
    banner_flags_count: str = ""

    notes: str = ""
    receiver_name: str = ""
    payer_name: str = ""
    receipt_number: str = ""

    @field_validator(*UPPERCASE_FIELDS, mode="before")
    @classmethod
    def uppercase_text(cls, v: Optional[str]) -> str:
        """Free-text fields are stored upper-cased, as typed into the form."""
        if v is None:
            return ""
        return str(v).upper()

    @field_validator("receipt_date")
    @classmethod
    def validate_receipt_date(cls, v: str) -> str:
        """Allow empty or YYYY-MM-DD."""
        if v:
            datetime.strptime(v, "%Y-%m-%d")
        return v

    def set_receipt_date(self, value: date) -> None:
        """Set the ISO date and keep the split Western and Eastern Arabic parts in sync."""
        self.receipt_date = value.isoformat()
        self.day = f"{value.day:02d}"
        self.month = f"{value.month:02d}"
        self.year = str(value.year)
        self.day_ar = to_eastern_arabic(value.day, 2)
        self.month_ar = to_eastern_arabic(value.month, 2)
        self.year_ar = to_eastern_arabic(value.year, 4)

    def zone_flags(self) -> dict[str, bool]:
        """Ad zone selections keyed by zone letter."""
        return {letter: getattr(self, f"ads_zone_{letter.lower()}") for letter in AD_ZONES}

    def active_zones(self) -> list[str]:
        """Selected zones as display labels, e.g. ['Zone A', 'Zone C']."""
        return [f"Zone {letter}" for letter, checked in self.zone_flags().items() if checked]


class ServiceFlags(BaseModel):
    """Additional services booked with a receipt."""

    electricity: bool = False
    chairs: bool = False
    table: bool = False

    def enabled(self) -> list[str]:
        """Names of the enabled services."""
        return [name for name, value in self.model_dump().items() if value]


class AdvertisementSelection(BaseModel):
    """Advertisement zones and quantities booked with a receipt."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    zones: list[str] = []
    total_quantity: str = ""
    car_flags: str = ""
    banner_flags: str = ""


class ReceiptStatus(str, Enum):
    """Stored receipt status."""

    ACTIVE = "active"
    ARCHIVED = "archived"


class StoredReceipt(BaseModel):
    """Receipt record persisted in the receipt log."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    receipt_number: str = "N/A"
    date: str
    received_from: str = ""
    amount: str = ""
    tent_number: str = ""
    usage_purpose: str = ""
    description: str = ""
    notes: str = ""
    receiver_name: str = ""
    payer_name: str = ""
    services: ServiceFlags = Field(default_factory=ServiceFlags)
    advertisements: AdvertisementSelection = Field(default_factory=AdvertisementSelection)
    created_at: datetime = Field(default_factory=datetime.now)
    status: ReceiptStatus = ReceiptStatus.ACTIVE


class ReceiptStats(BaseModel):
    """Aggregate figures over the receipt log."""

    total_receipts: int = 0
    total_amount: float = 0.0
    this_month_receipts: int = 0
    unique_tents: int = 0
    average_amount: float = 0.0

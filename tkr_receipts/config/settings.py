"""Configuration management using Pydantic Settings."""

from pathlib import Path
from typing import Annotated, Literal

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class AppConfig(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    env: Literal["development", "production", "testing"] = Field(default="development", alias="APP_ENV")
    debug: bool = Field(default=False, alias="APP_DEBUG")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )
    log_format: Literal["json", "console"] = Field(default="console", alias="LOG_FORMAT")


class StorageConfig(BaseSettings):
    """Local key-value storage configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    data_dir: Path = Field(default=Path.home() / ".tkr", alias="TKR_DATA_DIR")
    store_file: str = Field(default="store.json", alias="TKR_STORE_FILE")

    # Well-known keys
    counter_key: str = "RECEIPT_COUNTER_VALUE"
    receipts_key: str = "TKR_RECEIPTS_DATABASE"
    session_key: str = "RECEIPT_ADMIN_SESSION_TOKEN"

    @field_validator("data_dir", mode="before")
    @classmethod
    def validate_path(cls, v: str | Path) -> Path:
        """Convert string to Path."""
        return Path(v).expanduser() if isinstance(v, str) else v

    @property
    def store_path(self) -> Path:
        """Full path of the JSON store file."""
        return self.data_dir / self.store_file


class ReceiptConfig(BaseSettings):
    """Receipt numbering and document text configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    prefix: str = Field(default="TKR2025", alias="RECEIPT_PREFIX")
    number_width: int = Field(default=4, alias="RECEIPT_NUMBER_WIDTH")
    output_dir: Path = Field(default=Path("."), alias="RECEIPT_OUTPUT_DIR")
    event_title_en: str = Field(
        default="TRIPOLI KARTING RACE 2025 - SEASON 1", alias="RECEIPT_EVENT_TITLE_EN"
    )
    event_title_ar: str = Field(default="مهرجان طرابلس للكارتينج", alias="RECEIPT_EVENT_TITLE_AR")
    default_subscription_purpose: str = Field(
        default="Subscription in Tripoli Karting Race / اشتراك في مهرجان طرابلس للكارتينج",
        alias="RECEIPT_DEFAULT_PURPOSE",
    )

    @field_validator("output_dir", mode="before")
    @classmethod
    def validate_path(cls, v: str | Path) -> Path:
        """Convert string to Path."""
        return Path(v) if isinstance(v, str) else v


class FontConfig(BaseSettings):
    """Font resolution configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    search_paths: Annotated[list[str], NoDecode] = Field(
        default=[
            "/fonts/",
            "./fonts/",
            "fonts/",
            "https://elegant-naiad-f799e7.netlify.app/fonts/",
        ],
        alias="FONT_PATHS",
    )
    latin_family: str = "Inter"
    arabic_family: str = "NotoKufiArabic"
    latin_regular_file: str = Field(default="Inter-Regular.ttf", alias="FONT_LATIN_REGULAR")
    latin_bold_file: str = Field(default="Inter-Bold.ttf", alias="FONT_LATIN_BOLD")
    arabic_regular_file: str = Field(
        default="NotoKufiArabic-Regular.ttf", alias="FONT_ARABIC_REGULAR"
    )
    arabic_bold_file: str = Field(default="NotoKufiArabic-Bold.ttf", alias="FONT_ARABIC_BOLD")
    fetch_timeout_seconds: float = Field(default=10.0, alias="FONT_FETCH_TIMEOUT")

    @field_validator("search_paths", mode="before")
    @classmethod
    def parse_paths(cls, v: str | list[str]) -> list[str]:
        """Parse comma-separated string or list."""
        if isinstance(v, str):
            return [path.strip() for path in v.split(",") if path.strip()]
        return v


class BrandingConfig(BaseSettings):
    """Logo configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    logo_url: str = Field(
        default="https://hbslewdkkgwsaohjyzak.supabase.co/storage/v1/object/public/tkr//logo.png",
        alias="LOGO_URL",
    )
    logo_height_mm: float = Field(default=12.0, alias="LOGO_HEIGHT_MM")


class GeminiConfig(BaseSettings):
    """Gemini API configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    api_key: SecretStr = Field(default=SecretStr(""), alias="GEMINI_API_KEY")
    model: str = Field(default="gemini-2.5-flash-preview-04-17", alias="GEMINI_MODEL")
    base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta", alias="GEMINI_BASE_URL"
    )
    timeout_seconds: int = Field(default=120, alias="GEMINI_TIMEOUT")
    max_retries: int = Field(default=3, alias="GEMINI_MAX_RETRIES")
    max_file_size_mb: int = Field(default=10, alias="GEMINI_MAX_FILE_SIZE_MB")


class CompanyDetails(BaseModel):
    """Issuer details printed on quotations."""

    name: str = "Tripoli Events & Services Co."
    address: str = "123 Event Street, Tripoli, Lebanon"
    phone: str = "+961 X XXX XXX"
    email: str = "info@tripolievents.com"
    logo_url: str | None = (
        "https://hbslewdkkgwsaohjyzak.supabase.co/storage/v1/object/public/tkr//logo.png"
    )


class QuotationConfig(BaseSettings):
    """Quotation document configuration."""

    model_config = SettingsConfigDict(env_prefix="QUOTATION_", extra="ignore")

    company: CompanyDetails = Field(default_factory=CompanyDetails)
    tax_rate: float = Field(default=0.0, ge=0.0, le=1.0, alias="QUOTATION_TAX_RATE")


class Settings(BaseSettings):
    """Master settings combining all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app: AppConfig = Field(default_factory=AppConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    receipt: ReceiptConfig = Field(default_factory=ReceiptConfig)
    fonts: FontConfig = Field(default_factory=FontConfig)
    branding: BrandingConfig = Field(default_factory=BrandingConfig)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    quotation: QuotationConfig = Field(default_factory=QuotationConfig)


# Global settings instance
settings = Settings()

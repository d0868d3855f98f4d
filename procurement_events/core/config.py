import json
from os import getenv
from typing import Dict, FrozenSet

from dotenv import load_dotenv
from pydantic import BaseModel

from procurement_events.schemas.events import TenderStatus

load_dotenv()

DEFAULT_ENDPOINTS = {
    "createRfx": "/esop/jint/api/public/ja/v1/rfxs/",
    "exportRfx": "/esop/jint/api/public/ja/v1/rfxs/",
    "publishRfx": "/esop/jint/api/public/ja/v1/rfxs/publish",
    "getAttachment": "/esop/jint/api/public/ja/v1/attachments",
}

DEFAULT_CREATE_RFX = {
    "templateId": "itt_543",
    "defaultTitleFormat": "%s-%s",
}

DEFAULT_RFX_STATUS_TO_TENDER_STATUS = {
    "0": "planning",
    "100": "planned",
    "300": "active",
    "400": "complete",
    "500": "cancelled",
    "800": "unsuccessful",
    "1000": "withdrawn",
}


class Config:

    ALLOWED_ORIGINS: list = getenv("ALLOWED_ORIGINS", "http://localhost:5173").split(",")

    POSTGRES_USER: str = getenv("POSTGRES_USER", "postgres")
    POSTGRES_PASSWORD: str = getenv("POSTGRES_PASSWORD", "postgres")
    POSTGRES_DB: str = getenv("POSTGRES_DB", "procurement")
    POSTGRES_PORT: str = getenv("POSTGRES_PORT", "5432")

    @property
    def DATABASE_URL(self) -> str:
        return getenv(
            "DATABASE_URL",
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@db:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    DB_RETRY_ATTEMPTS: int = int(getenv("DB_RETRY_ATTEMPTS", "3"))

    # Remote sourcing platform
    REMOTE_BASE_URL: str = getenv("REMOTE_BASE_URL")
    REMOTE_API_TOKEN: str = getenv("REMOTE_API_TOKEN")
    REMOTE_TIMEOUT_SECONDS: float = float(getenv("REMOTE_TIMEOUT_SECONDS", "30"))
    REMOTE_ENDPOINTS: str = getenv("REMOTE_ENDPOINTS", "{}")
    REMOTE_CREATE_RFX: str = getenv("REMOTE_CREATE_RFX", "{}")
    RFX_STATUS_TO_TENDER_STATUS: str = getenv("RFX_STATUS_TO_TENDER_STATUS", "")

    # Documents
    DOCUMENT_ALLOWED_EXTENSIONS: list = getenv(
        "DOCUMENT_ALLOWED_EXTENSIONS", "csv,doc,docx,jpg,kml,ods,odt,pdf,png,ppt,pptx,rdf,rtf,txt,xls,xlsx,xml,zip"
    ).split(",")
    DOCUMENT_MAX_SIZE: int = int(getenv("DOCUMENT_MAX_SIZE", str(300 * 1024 * 1024)))
    DOCUMENT_MAX_TOTAL_SIZE: int = int(getenv("DOCUMENT_MAX_TOTAL_SIZE", str(1024 * 1024 * 1024)))

    # OCDS identifiers
    OCDS_AUTHORITY: str = getenv("OCDS_AUTHORITY", "ocds")
    OCDS_OCID_PREFIX: str = getenv("OCDS_OCID_PREFIX", "b5fd17")

    # Токен HTTP API
    API_TOKEN: str = getenv("API_TOKEN")

    APP_PORT: int = int(getenv("APP_PORT", "8000"))

    def validate(self) -> None:
        """Проверяет наличие обязательных переменных окружения."""
        required_vars = {
            "REMOTE_BASE_URL": self.REMOTE_BASE_URL,
            "API_TOKEN": self.API_TOKEN,
        }
        missing_vars = [key for key, value in required_vars.items() if not value]
        if missing_vars:
            raise ValueError(f"Missing required environment variables: {', '.join(missing_vars)}")


class RemotePlatformConfig(BaseModel):
    base_url: str
    api_token: str | None = None
    timeout_seconds: float = 30
    endpoints: Dict[str, str] = DEFAULT_ENDPOINTS
    create_rfx: Dict[str, str] = DEFAULT_CREATE_RFX

    class Config:
        frozen = True

    def endpoint(self, name: str) -> str:
        return self.endpoints[name]


class DocumentConfig(BaseModel):
    allowed_extensions: FrozenSet[str]
    max_size: int
    max_total_size: int

    class Config:
        frozen = True


class OcdsConfig(BaseModel):
    authority: str = "ocds"
    ocid_prefix: str = "b5fd17"

    class Config:
        frozen = True

    @property
    def event_id_prefix(self) -> str:
        return f"{self.authority}-{self.ocid_prefix}-"


class EventConfig(BaseModel):
    remote: RemotePlatformConfig
    rfx_status_to_tender_status: Dict[str, TenderStatus]
    documents: DocumentConfig
    ocds: OcdsConfig = OcdsConfig()

    class Config:
        frozen = True


def _json_map(raw: str, defaults: dict) -> dict:
    if not raw:
        return dict(defaults)
    try:
        overrides = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON configuration value {raw!r}: {e}") from e
    return {**defaults, **{str(k): v for k, v in overrides.items()}}


def load_event_config(config: Config) -> EventConfig:
    """Builds the immutable configuration handed to the event services."""
    status_map = (
        json.loads(config.RFX_STATUS_TO_TENDER_STATUS)
        if config.RFX_STATUS_TO_TENDER_STATUS
        else DEFAULT_RFX_STATUS_TO_TENDER_STATUS
    )
    return EventConfig(
        remote=RemotePlatformConfig(
            base_url=config.REMOTE_BASE_URL or "",
            api_token=config.REMOTE_API_TOKEN,
            timeout_seconds=config.REMOTE_TIMEOUT_SECONDS,
            endpoints=_json_map(config.REMOTE_ENDPOINTS, DEFAULT_ENDPOINTS),
            create_rfx=_json_map(config.REMOTE_CREATE_RFX, DEFAULT_CREATE_RFX),
        ),
        rfx_status_to_tender_status={str(k): TenderStatus(v) for k, v in status_map.items()},
        documents=DocumentConfig(
            allowed_extensions=frozenset(
                ext.strip().lower() for ext in config.DOCUMENT_ALLOWED_EXTENSIONS if ext.strip()
            ),
            max_size=config.DOCUMENT_MAX_SIZE,
            max_total_size=config.DOCUMENT_MAX_TOTAL_SIZE,
        ),
        ocds=OcdsConfig(authority=config.OCDS_AUTHORITY, ocid_prefix=config.OCDS_OCID_PREFIX),
    )


settings = Config()

# levelup/config.py
import json
import logging
from pathlib import Path
from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from rich.logging import RichHandler

# Environment-driven settings. Loaded once by create_app() and handed to the
# handlers through FastAPI dependencies.

# data/, fixtures/ and dist/ live next to the package, not in the working directory
PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )

    port: int = Field(3001, alias="PORT")
    admin_token: str = Field("", alias="ADMIN_TOKEN")

    openai_api_key: str = Field("", alias="OPENAI_API_KEY")
    openai_model: str = Field("gpt-4o-mini", alias="OPENAI_MODEL")

    mercadopago_access_token: str = Field("", alias="MERCADOPAGO_ACCESS_TOKEN")
    mercadopago_api_url: str = Field("https://api.mercadopago.com", alias="MERCADOPAGO_API_URL")
    website_url: Optional[str] = Field(None, alias="WEBSITE_URL")
    app_env: str = Field("development", alias="APP_ENV")
    debug_mp: bool = Field(False, alias="DEBUG_MP")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    data_dir: Path = Field(PROJECT_ROOT / "data", alias="DATA_DIR")
    seed_files: Annotated[List[Path], NoDecode] = Field(
        default_factory=lambda: [PROJECT_ROOT / "fixtures" / "products_fixed.json", PROJECT_ROOT / "fixtures" / "products.json"],
        alias="SEED_FILES",
    )
    dist_dir: Path = Field(PROJECT_ROOT / "dist", alias="DIST_DIR")

    @field_validator("admin_token", "openai_api_key", "mercadopago_access_token", mode="before")
    @classmethod
    def _strip(cls, v):
        return (v or "").strip()

    @field_validator("seed_files", mode="before")
    @classmethod
    def _split_paths(cls, v):
        # SEED_FILES accepts a JSON list or a comma-separated string
        if isinstance(v, str):
            text = v.strip()
            if text.startswith("["):
                return json.loads(text)
            return [p.strip() for p in text.split(",") if p.strip()]
        return v

    @property
    def store_file(self) -> Path:
        return self.data_dir / "products-store.json"

    @property
    def public_base_url(self) -> str:
        return (self.website_url or f"http://localhost:{self.port}").rstrip("/")

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"


def configure_logging(settings: Settings) -> None:
    level = logging.DEBUG if settings.debug_mp else settings.log_level.upper()
    root = logging.getLogger("levelup")
    root.setLevel(level)
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        root.addHandler(RichHandler(rich_tracebacks=True, show_path=False))

"""Application configuration using Pydantic Settings."""
from typing import List, Optional, Union

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from pymongo.uri_parser import parse_uri

DEFAULT_SECRET_KEY = "dev_secret_key_change_in_prod"
DEFAULT_ORIGINS = ["http://localhost:3001", "http://localhost:5173"]


def parse_comma_list(value: Union[str, List[str], None], default: List[str]) -> List[str]:
    """Parse comma-separated string into list."""
    if value is None:
        return default
    if isinstance(value, list):
        return value
    items = [item.strip() for item in value.split(",") if item.strip()]
    return items or default


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str = Field(
        default="mongodb://localhost:27017/time_db",
        validation_alias=AliasChoices("DATABASE_URL", "MONGODB_URI"),
    )
    database_name_override: Optional[str] = Field(default=None, validation_alias="DATABASE_NAME")

    # Server
    port: int = Field(default=3000, validation_alias="PORT")
    environment: str = Field(
        default="development", validation_alias=AliasChoices("ENVIRONMENT", "NODE_ENV")
    )
    debug: bool = False

    # Env format: ALLOWED_ORIGINS="http://localhost:3001,http://localhost:5173"
    allowed_origins_str: Optional[str] = Field(default=None, validation_alias="ALLOWED_ORIGINS")

    # Sessions & credentials
    secret_key: str = Field(default=DEFAULT_SECRET_KEY, validation_alias="SECRET_KEY")
    session_ttl_hours: int = 24
    bcrypt_rounds: int = 10

    @property
    def allowed_origins(self) -> List[str]:
        return parse_comma_list(self.allowed_origins_str, DEFAULT_ORIGINS)

    @property
    def database_name(self) -> str:
        if self.database_name_override:
            return self.database_name_override
        return parse_uri(self.database_url).get("database") or "time_db"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


settings = Settings()

from typing import Optional

from pydantic import field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .secrets_manager import SecretsManager

class Settings(BaseSettings):
    aws_region: str = "us-east-1"
    environment: str = "development"
    host: str = "localhost"
    db_username: str = "postgres"
    db_password: SecretStr = SecretStr("postgres")
    database: str = "sos"
    port: int = 5432
    # Full SQLAlchemy URL; overrides the individual connection parts when set
    database_url: Optional[str] = None
    gemini_api_key: SecretStr = SecretStr("")
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    gemini_model: str = "gemini-1.5-flash"
    nominatim_url: str = "https://nominatim.openstreetmap.org"
    nominatim_user_agent: str = "sos-response-api/1.0"
    geocoding_timeout: float = 10.0
    firebase_project_id: str = "sos-emergency-app"
    notification_fanout_concurrency: int = 10
    user_search_limit: int = 50
    news_cache_ttl: int = 300
    news_location: str = "Kolkata"
    heartbeat_interval: int = 30
    # Assistant conversations idle longer than this are dropped
    assistant_idle_ttl: int = 3600
    assistant_cache_size: int = 1000
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @field_validator("db_username", "db_password", "gemini_api_key", mode="before")
    @classmethod
    def load_secrets(cls, v, info):
        if info.data.get("environment") == "production":
            try:
                secrets = SecretsManager(region_name=info.data.get("aws_region"))
                if info.field_name == "gemini_api_key":
                    v = secrets.get_api_key("gemini")
                elif info.field_name == "db_username":
                    v = secrets.get_db_credentials()["username"]
                elif info.field_name == "db_password":
                    v = secrets.get_db_credentials()["password"]
                return v
            except Exception:
                # Keep the environment value when Secrets Manager is unreachable
                return v
        return v

    @property
    def sqlalchemy_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+psycopg://{self.db_username}:{self.db_password.get_secret_value()}"
            f"@{self.host}:{self.port}/{self.database}"
        )

settings = Settings()

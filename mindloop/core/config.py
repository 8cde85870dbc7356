from pathlib import Path
from typing import Optional, Union

from dotenv import set_key
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

LOCAL_DATABASE_URL = "sqlite:///./mindloop.db"

# local: SQLite file next to the process; byodb: bring your own PostgreSQL
PROFILE_MODES = ("local", "byodb")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # SQLite locally, PostgreSQL remotely.
    DATABASE_URL: str = LOCAL_DATABASE_URL
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # Profile written by `mindloop configure`
    USER_NAME: str = ""
    MODE: str = "local"

    # Create missing tables on startup. Disable when Alembic owns the schema.
    AUTO_CREATE_TABLES: bool = True

    # Comma-separated allowed origins, or "*" to allow all.
    # Example: "https://myapp.com,https://api.myapp.com"
    CORS_ORIGINS: str = "*"

    @property
    def database_url(self) -> str:
        # Heroku-style URLs are rejected by SQLAlchemy 2.x
        if self.DATABASE_URL.startswith("postgres://"):
            return self.DATABASE_URL.replace("postgres://", "postgresql://", 1)
        return self.DATABASE_URL

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


def postgres_url(
    host: str,
    port: Optional[int],
    user: str,
    password: str,
    name: str = "mindloop",
) -> str:
    """PostgreSQL URL with user and password escaped."""
    url = URL.create(
        "postgresql",
        username=user or None,
        password=password or None,
        host=host or "localhost",
        port=port,
        database=name or "mindloop",
    )
    return url.render_as_string(hide_password=False)


def write_env_file(path: Union[str, Path], values: dict[str, str]) -> Path:
    """Set `values` in a dotenv file, keeping every other line as it is."""
    path = Path(path)
    path.touch(exist_ok=True)
    for key, value in values.items():
        set_key(str(path), key, value)
    return path

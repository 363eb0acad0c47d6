from typing import Optional, Dict, Any, Union
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import PostgresDsn, field_validator
from pathlib import Path

# Define the root directory of the room_design service
SERVICE_ROOT_DIR = Path(__file__).parent.parent.resolve()
# Path to the repository root (two levels up from this settings.py)
PROJECT_ROOT_DIR = SERVICE_ROOT_DIR.parent

class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "RoomDesignService"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8002

    # Security settings
    ALLOWED_HOSTS: Union[str, list[str]] = "localhost,127.0.0.1,0.0.0.0,test"
    CORS_ORIGINS: Union[str, list[str]] = "http://localhost:3000,http://localhost:5173"
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: Union[str, list[str]] = "GET,POST,PUT,PATCH,DELETE"
    CORS_ALLOW_HEADERS: Union[str, list[str]] = "*"

    # Canvas bounds used for coordinate clamping
    CANVAS_WIDTH: int = 800
    CANVAS_HEIGHT: int = 600

    # Storage settings
    STORE_BACKEND: str = "memory"  # "memory" or "database"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "user"
    DB_PASSWORD: str = "password"
    DB_NAME: str = "room_design_db"
    DATABASE_URL: Optional[str] = None

    @field_validator("DATABASE_URL", mode='before')
    @classmethod
    def assemble_db_connection(cls, v: Optional[str], values: Dict[str, Any]) -> Any:
        if isinstance(v, str):
            return v
        db_user = values.data.get("DB_USER")
        db_password = values.data.get("DB_PASSWORD")
        db_host = values.data.get("DB_HOST")
        db_port = values.data.get("DB_PORT")
        db_name = values.data.get("DB_NAME")

        return str(PostgresDsn.build(
            scheme="postgresql+asyncpg",
            username=db_user,
            password=db_password,
            host=db_host,
            port=db_port,
            path=f"{db_name or ''}",
        ))

    def model_post_init(self, __context) -> None:
        """Parse comma-separated strings into lists after model initialization."""
        if isinstance(self.ALLOWED_HOSTS, str):
            self.ALLOWED_HOSTS = [host.strip() for host in self.ALLOWED_HOSTS.split(',') if host.strip()]

        if isinstance(self.CORS_ORIGINS, str):
            self.CORS_ORIGINS = [origin.strip() for origin in self.CORS_ORIGINS.split(',') if origin.strip()]

        if isinstance(self.CORS_ALLOW_METHODS, str):
            self.CORS_ALLOW_METHODS = [method.strip() for method in self.CORS_ALLOW_METHODS.split(',') if method.strip()]

        if isinstance(self.CORS_ALLOW_HEADERS, str):
            if self.CORS_ALLOW_HEADERS == "*":
                self.CORS_ALLOW_HEADERS = ["*"]
            else:
                self.CORS_ALLOW_HEADERS = [header.strip() for header in self.CORS_ALLOW_HEADERS.split(',') if header.strip()]

    # Submission index namespace (host post id); the theme id is used when unset
    POST_ID: Optional[str] = None

    # Theme rotation
    THEME_DURATION_HOURS: int = 24
    THEME_ROTATION_ENABLED: bool = True
    THEME_ROTATION_INTERVAL_SECONDS: int = 300
    THEME_NOTIFICATION_WEBHOOK_URL: Optional[str] = None
    THEME_NOTIFICATION_API_KEY: Optional[str] = None

    # Optimistic concurrency budget for design mutations
    MUTATION_MAX_RETRIES: int = 5

    # Gallery pagination
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Base URL prefixed to sprite file names in the asset catalog
    ASSET_BASE_URL: str = ""

    # Auto-save quiet period
    AUTOSAVE_DEBOUNCE_SECONDS: float = 2.0

    # Logging configuration path (can be overridden by env var)
    LOGGING_CONFIG_PATH: str = str(SERVICE_ROOT_DIR / "config" / "logging_config.yaml")

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT_DIR / ".env"),  # Load variables from project root .env
        env_file_encoding='utf-8',
        extra='ignore'
    )

# Instantiate settings
settings = Settings()

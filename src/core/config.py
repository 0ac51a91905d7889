from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import PostgresDsn, SecretStr
from pathlib import Path


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    # -------------- APP CONFIG --------------
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 8000
    APP_NAME: str = "ChatRoles"
    DEBUG: bool = False

    CORS_ORIGINS: list[str] = ["*"]

    # -------------- Logging CONFIG --------------
    SQLALCHEMY_ECHO: bool = False

    LOG_SENSITIVE_DATA: list[str] = ["authorization", "password", "token"]
    LOG_LEVEL: str = "INFO"
    LOG_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S.%f"
    LOG_TO_FILE: bool = True

    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    _LOGS_DIR: Path = BASE_DIR / "logs"

    @property
    def LOGS_DIR(self) -> Path:
        Path.mkdir(self._LOGS_DIR, parents=True, exist_ok=True)
        return self._LOGS_DIR

    # -------------- DB CONFIG --------------
    DB_USER: str = "postgres"
    DB_PASS: str = "postgres"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "chat_roles"

    # Full DSN override, e.g. sqlite+aiosqlite:// for local runs
    DB_URL: str | None = None

    @property
    def DATABASE_URL(self) -> PostgresDsn | str:
        if self.DB_URL:
            return self.DB_URL
        return f"postgresql+asyncpg://{self.DB_USER}:{self.DB_PASS}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # -------------- JWT --------------
    JWT_SECRET_KEY: SecretStr
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # -------------- ROLES --------------
    DEFAULT_ROLE_NAME: str = "everyone"
    # Non-empty so plain members can read and post without being granted a role
    DEFAULT_ROLE_PERMISSIONS: list[str] = ["view_chat", "send_message"]

    # -------------- CONVERSATION LIMITS --------------
    MAX_DIRECT_CONVERSATIONS: int = 20  # Per user, counted over memberships
    MAX_GROUP_CONVERSATIONS: int = 20

    # -------------- MUTE BOUNDS --------------
    MUTE_MIN_SECONDS: int = 60
    MUTE_MAX_SECONDS: int = 7 * 24 * 60 * 60
    MUTE_CLOCK_SKEW_SECONDS: int = 1  # Tolerance for the lower bound only


settings = Settings()

from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

ROOT_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = ROOT_DIR / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 3000

    # =================================================================
    # RECORD STORE SETTINGS
    # =================================================================
    DATA_DIR: str | None = None
    DB_FILENAME: str = "db.json"
    # "degrade": unreadable store falls back to an empty document
    # "fail": unreadable store surfaces as a 500
    STORE_LOAD_POLICY: Literal["degrade", "fail"] = "degrade"

    # OpenAI settings
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    AI_TIMEOUT_SECONDS: float = 30.0

    # Browser front end
    CORS_ALLOWED_ORIGINS: list[str] = ["*"]
    PUBLIC_DIR: str | None = None

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def data_dir(self) -> Path:
        """Directory holding the JSON document (Render: DATA_DIR=/data)."""
        if self.DATA_DIR:
            return Path(self.DATA_DIR).resolve()
        return ROOT_DIR / "data"

    def db_path(self) -> Path:
        return self.data_dir() / self.DB_FILENAME

    def public_dir(self) -> Path | None:
        if not self.PUBLIC_DIR:
            return None
        return Path(self.PUBLIC_DIR).resolve()

    def ai_configured(self) -> bool:
        return bool(self.OPENAI_API_KEY)


settings = Settings()

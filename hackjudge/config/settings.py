"""
Settings

Centralized configuration for the judging core.
All values are loaded from environment variables (a local .env is honoured).
A Settings instance is passed explicitly to the database, ledger, app and CLI;
nothing reads configuration from module globals at call time.
"""
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
ENV_FILE = PROJECT_ROOT / ".env"

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./hackjudge.db"


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on', 'enabled')


def get_int_env(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    return int(value)


class Settings:
    """
    Runtime settings.

    To add a new setting:
    1. Add it as a constructor argument with a default
    2. Load it from its environment variable in from_env()
    """

    def __init__(
        self,
        database_url: str = DEFAULT_DATABASE_URL,
        log_level: str = "INFO",
        environment: str = "development",
        score_min: int = 1,
        score_max: int = 10,
        mock_cipher_key: str = "hackjudge-development-key",
        feature_http_docs: bool = True,
        feature_ledger_chain_verify: bool = True,
        database_echo: bool = False,
        allowed_origins: Optional[List[str]] = None,
    ):
        if score_min > score_max:
            raise ValueError(f"score_min ({score_min}) must not exceed score_max ({score_max})")
        self.database_url = database_url
        self.log_level = log_level.upper()
        self.environment = environment
        self.score_min = score_min
        self.score_max = score_max
        self.mock_cipher_key = mock_cipher_key
        self.feature_http_docs = feature_http_docs
        self.feature_ledger_chain_verify = feature_ledger_chain_verify
        self.database_echo = database_echo
        self.allowed_origins = allowed_origins or []

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None) -> "Settings":
        load_dotenv(dotenv_path=env_file or ENV_FILE)
        environment = os.getenv("ENVIRONMENT", "development")
        return cls(
            database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            environment=environment,
            score_min=get_int_env("SCORE_MIN", 1),
            score_max=get_int_env("SCORE_MAX", 10),
            mock_cipher_key=os.getenv("MOCK_CIPHER_KEY", "hackjudge-development-key"),
            feature_http_docs=get_bool_env("FEATURE_HTTP_DOCS", environment == "development"),
            feature_ledger_chain_verify=get_bool_env("FEATURE_LEDGER_CHAIN_VERIFY", True),
            database_echo=get_bool_env("DATABASE_ECHO", False),
            allowed_origins=[o.strip() for o in os.getenv("ALLOWED_ORIGINS", "").split(",") if o.strip()],
        )

    @property
    def is_sqlite(self) -> bool:
        return "sqlite" in self.database_url.lower()

    @property
    def is_memory_database(self) -> bool:
        return self.is_sqlite and (":memory:" in self.database_url or self.database_url.endswith("://"))

    def as_dict(self) -> dict:
        """Settings safe to display (secrets redacted)."""
        return {
            "database_url": self.database_url,
            "log_level": self.log_level,
            "environment": self.environment,
            "score_min": self.score_min,
            "score_max": self.score_max,
            "mock_cipher_key": "***",
            "feature_http_docs": self.feature_http_docs,
            "feature_ledger_chain_verify": self.feature_ledger_chain_verify,
            "allowed_origins": self.allowed_origins,
        }

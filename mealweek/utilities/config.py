"""Configuration management for the weekly meal planner."""
import os
from dataclasses import dataclass
from typing import Final, Optional
from pathlib import Path

# Load environment variables from .env file if it exists
from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / '.env'
if env_path.exists():
    load_dotenv(env_path)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


# Remote key-value store (Upstash / Vercel KV REST API)
KV_REST_API_URL: Final[Optional[str]] = os.getenv('KV_REST_API_URL') or None
KV_REST_API_TOKEN: Final[Optional[str]] = os.getenv('KV_REST_API_TOKEN') or None
KV_TIMEOUT_SECONDS: Final[float] = float(os.getenv('KV_TIMEOUT_SECONDS', '5'))

# Application Settings
APP_HOST: Final[str] = os.getenv('APP_HOST', '0.0.0.0')
APP_PORT: Final[int] = int(os.getenv('APP_PORT', '8000'))
DEBUG: Final[bool] = _flag('DEBUG', 'false')
REQUIRE_AUTH: Final[bool] = _flag('REQUIRE_AUTH', 'true')

# File Paths
BASE_DIR: Final[Path] = Path(__file__).parent.parent
DATA_DIR: Final[Path] = Path(os.getenv('MEALS_DATA_DIR', str(BASE_DIR / 'data'))).resolve()


@dataclass(frozen=True)
class StorageSettings:
    """Where meals are persisted. Resolved once at startup, then injected."""
    data_dir: Path
    kv_url: Optional[str] = None
    kv_token: Optional[str] = None
    kv_timeout: float = 5.0

    @property
    def has_remote(self) -> bool:
        return bool(self.kv_url and self.kv_token)

    @classmethod
    def from_env(cls) -> "StorageSettings":
        return cls(
            data_dir=DATA_DIR,
            kv_url=KV_REST_API_URL,
            kv_token=KV_REST_API_TOKEN,
            kv_timeout=KV_TIMEOUT_SECONDS,
        )

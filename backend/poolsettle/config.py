"""
backend/poolsettle/config.py

Purpose:
    Central settings loading for the settlement bot and the local resolver
    tooling.

Dependencies:
    - pydantic-settings
    - pathlib
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings

# Prefer backend/.env, fallback to project-root .env.
_BACKEND_ENV_FILE = Path(__file__).resolve().parent.parent / ".env"
_ROOT_ENV_FILE = Path(__file__).resolve().parent.parent.parent / ".env"


class FatalConfigError(RuntimeError):
    """Raised when the run cannot start (missing credential, no secrets pointer)."""


class Settings(BaseSettings):
    # Chain access
    RPC_URL: str = ""
    PRIVATE_KEY: str = ""
    RPC_TIMEOUT_SECONDS: float = 20.0

    # Functions request parameters
    FUNCTIONS_SUBSCRIPTION_ID: int = 0
    FUNCTIONS_GAS_LIMIT: int = 300_000
    DON_SECRETS_SLOT_ID: int = 0
    DON_SECRETS_VERSION: Optional[int] = None  # Explicit pointer; wins over remote/local
    DON_ID: str = "fun-ethereum-sepolia-1"
    REQUEST_METHOD: Literal["sendRequest", "retryRequest"] = "sendRequest"

    # Secrets pointer sources (remote first, then local file)
    SECRETS_POINTER_URL: str = ""
    SECRETS_REMOTE_REPO: str = ""  # "owner/name" on GitHub
    SECRETS_REMOTE_PATH: str = "activeSecrets.json"
    SECRETS_REMOTE_REF: str = "main"
    SECRETS_REMOTE_TOKEN: str = ""
    SECRETS_LOCAL_PATH: str = "activeSecrets.json"

    # Dispatch pass
    DRY_RUN: bool = False
    MAX_TX_PER_RUN: int = 8
    REQUEST_GAP_SECONDS: int = 120
    ARGS_COMPAT_MODE: bool = False
    PRECHECK_RESULTS: bool = False
    SUBMIT_RATE_LIMIT_RPM: int = 0  # 0 disables the submission throttle

    # Pool discovery
    POOL_ADDRESSES: str = ""  # Comma-separated; overrides GAMES_PATH
    GAMES_PATH: str = "src/data/games.json"

    # TheSportsDB (used by the local precheck and tools.resolve_event)
    THESPORTSDB_API_KEY: str = ""
    THESPORTSDB_BASE_URL: str = "https://www.thesportsdb.com/api/v1/json"
    THESPORTSDB_RATE_LIMIT_RPM: int = 30
    PROVIDER_TIMEOUT_SECONDS: float = 10.0

    LOG_LEVEL: str = "INFO"

    model_config = {
        "env_file": (str(_BACKEND_ENV_FILE), str(_ROOT_ENV_FILE)),
        "extra": "ignore",
    }


def validate_run_settings(cfg: Settings) -> None:
    """Fail fast on configuration that would make every dispatch fail."""
    if not cfg.RPC_URL.strip():
        raise FatalConfigError("RPC_URL is not configured")
    if not cfg.PRIVATE_KEY.strip():
        raise FatalConfigError("PRIVATE_KEY is not configured")
    if cfg.MAX_TX_PER_RUN < 0:
        raise FatalConfigError("MAX_TX_PER_RUN must be >= 0")
    if cfg.PRECHECK_RESULTS and not cfg.THESPORTSDB_API_KEY.strip():
        raise FatalConfigError("PRECHECK_RESULTS requires THESPORTSDB_API_KEY")


def resolver_secrets(cfg: Settings) -> dict[str, str]:
    """Secret map handed to the local resolver, shaped like the DON-hosted bundle."""
    return {
        "THESPORTSDB_API_KEY": cfg.THESPORTSDB_API_KEY.strip(),
        "THESPORTSDB_ENDPOINT": cfg.THESPORTSDB_BASE_URL.strip(),
    }


settings = Settings()

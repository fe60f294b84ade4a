import json
import logging
import re
from typing import Any
from urllib.parse import urlparse

# TheSportsDB v1 puts the key in the path: /api/v1/json/<key>/eventsday.php
_PATH_KEY = re.compile(r"(/json/)[^/]+/")


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    # web3/httpx debug chatter drowns the per-pool lines
    for noisy in ("httpx", "httpcore", "web3", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def safe_url(url: str) -> str:
    """Strip query params and the path-embedded API key for safe logging."""
    parsed = urlparse(str(url))
    path = _PATH_KEY.sub(r"\1***/", parsed.path)
    return f"{parsed.scheme}://{parsed.netloc}{path}"


def log_json(logger: logging.Logger, level: int, payload: dict[str, Any]) -> None:
    """Emit one structured log line."""
    logger.log(level, json.dumps(payload, sort_keys=True, default=str))

"""vowvenues entrypoint.

Run with:
  python -m vowvenues

Refuses to start when the token-signing secret is missing.
"""

import os
import sys

import uvicorn
from loguru import logger

from vowvenues.config import load_settings
from vowvenues.errors import ConfigurationError


def _truthy(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "y"}


def main() -> int:
    settings = load_settings()
    try:
        settings.require_secret()
    except ConfigurationError as e:
        logger.error("Cannot start vowvenues: {}", e.detail)
        return 2

    bind_host = os.getenv("VOW_HOST", "0.0.0.0")
    bind_port = int(os.getenv("VOW_PORT", "8000"))
    if _truthy(os.getenv("VOW_RELOAD", "false")):
        # the reloader needs an import string; the factory re-reads the environment
        uvicorn.run("vowvenues.app:create_app", factory=True, host=bind_host, port=bind_port, reload=True)
    else:
        from vowvenues.app import create_app

        uvicorn.run(create_app(settings), host=bind_host, port=bind_port)
    return 0


if __name__ == "__main__":
    sys.exit(main())

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


load_dotenv(override=False)

ROOT_ENV_VAR = "STOCKFLOW_ROOT"


def workspace_root() -> Path:
    """Return the writable StockFlow base directory.

    ``STOCKFLOW_ROOT`` (environment or ``.env``) wins; otherwise ``~/StockFlow``.
    """
    env = os.getenv(ROOT_ENV_VAR)
    if env:
        return Path(env).expanduser().resolve()
    return (Path.home() / "StockFlow").resolve()


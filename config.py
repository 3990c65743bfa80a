# ABOUTME: Environment-driven settings for the shadow reader service
# ABOUTME: Loads .env via python-dotenv; API keys are read on demand, never hard-coded
from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

MINIMAX_BASE_URL = os.getenv("MINIMAX_BASE_URL", "https://api.minimax.io")
GLM_BASE_URL = os.getenv("GLM_BASE_URL", "https://open.bigmodel.cn/api/paas/v4")
GLM_MODEL = os.getenv("GLM_MODEL", "glm-4-flash")

DB_PATH = os.getenv("SHADOW_DB_PATH", "data/shadow.db")
CACHE_MAX_ENTRIES = int(os.getenv("SHADOW_CACHE_MAX_ENTRIES", "64"))

HOST = os.getenv("SHADOW_HOST", "0.0.0.0")
PORT = int(os.getenv("SHADOW_PORT", "3000"))
CORS_ORIGINS = [o.strip() for o in os.getenv("SHADOW_CORS_ORIGINS", "*").split(",") if o.strip()]


def load_api_key(name: str) -> str:
    """Read an API key from the environment, failing loudly when absent."""
    key = os.getenv(name, "").strip()
    if not key:
        raise ValueError(f"{name} not configured. Add it to the environment or the .env file.")
    return key

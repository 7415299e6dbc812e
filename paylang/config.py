import os
from pathlib import Path
from dotenv import load_dotenv

# Force-load .env (Windows-safe, reload-safe)
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH)

PAYSTACK_BASE_URL = "https://api.paystack.co"
SMTP_PORT = 587
ADMIN_TOKEN_TTL_MINUTES = 60


def env(name: str, default=None):
    """Read a setting at call time so tests can patch os.environ."""
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def env_int(name: str, default: int) -> int:
    value = env(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {value!r}")

import os
from dotenv import load_dotenv

# Load params from .env file
load_dotenv()

# GitHub API access
GITHUB_TOKEN = os.getenv("GITHUB_TOKEN", "")
GITHUB_API_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")

# Project config discovery
DEFAULT_CONFIG_FILE_PATHS = [".covgate.yml", "covgate.yml"]

# Datastores used when central mode leaves them unset
DEFAULT_BADGES_DATASTORE = "local://reports"
DEFAULT_REPORTS_DATASTORE = "local://reports"


def _env_bool(name: str, default: bool) -> bool:
    raw = str(os.getenv(name, "true" if default else "false")).strip().lower()
    return raw in {"1", "true", "yes", "on"}


def get_log_level() -> str:
    return (os.getenv("COVGATE_LOG_LEVEL", "INFO") or "INFO").strip().upper()


def get_log_format() -> str:
    return (os.getenv("COVGATE_LOG_FORMAT", "text") or "text").strip().lower()


def is_debug_enabled() -> bool:
    return _env_bool("COVGATE_DEBUG", False)

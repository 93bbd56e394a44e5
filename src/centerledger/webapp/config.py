"""Configuration for the Center Ledger mock backend."""
from __future__ import annotations

import json
import os
from datetime import timedelta
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

SQLITE_FILE_NAME = os.environ.get("CENTERLEDGER_SQLITE", "centerledger.db")
SECRET_KEY = os.environ.get("CENTERLEDGER_SECRET", "change-this-token-secret")
LOG_FILE = os.environ.get("CENTERLEDGER_LOG") or None
TOKEN_LIFETIME = timedelta(hours=int(os.environ.get("CENTERLEDGER_TOKEN_HOURS", "24")))
CORS_ORIGINS: Tuple[str, ...] = tuple(
    origin.strip() for origin in os.environ.get("CENTERLEDGER_CORS_ORIGINS", "*").split(",") if origin.strip()
)

# user name -> (password, role)
DEFAULT_USERS: Dict[str, Tuple[str, str]] = {
    "admin": ("admin123", "admin"),
    "user": ("user123", "user"),
}


def load_users(raw: Optional[str]) -> Dict[str, Tuple[str, str]]:
    """Merge ``{"name": ["password", "role"]}`` JSON over the default users."""

    users = dict(DEFAULT_USERS)
    if not raw:
        return users
    for name, entry in json.loads(raw).items():
        password, role = entry
        users[str(name)] = (str(password), str(role))
    return users


USERS = load_users(os.environ.get("CENTERLEDGER_USERS"))

__all__ = [
    "CORS_ORIGINS",
    "DEFAULT_USERS",
    "LOG_FILE",
    "SECRET_KEY",
    "SQLITE_FILE_NAME",
    "TOKEN_LIFETIME",
    "USERS",
    "load_users",
]

"""
Core module - configuration, database and response formatting.
"""
from .config import Settings, get_settings
from .db import AsyncSessionLocal, Base, dispose_engine, engine, get_session
from .responses import ErrorCodes, error_response, success_response

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Database
    "AsyncSessionLocal",
    "Base",
    "dispose_engine",
    "engine",
    "get_session",
    # Responses
    "ErrorCodes",
    "error_response",
    "success_response",
]

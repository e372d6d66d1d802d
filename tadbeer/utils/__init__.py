"""Utility modules"""
from .logger import get_logger, setup_logging
from .jwt import JWTValidator, create_access_token, get_current_user
from .idgen import generate_id, generate_correlation_id
from .passwords import hash_password, verify_password
from .time import utc_now

__all__ = [
    "get_logger",
    "setup_logging",
    "JWTValidator",
    "create_access_token",
    "get_current_user",
    "generate_id",
    "generate_correlation_id",
    "hash_password",
    "verify_password",
    "utc_now",
]

"""ID Generation Utilities"""
import uuid
from datetime import datetime, timezone
from typing import Optional


def generate_id(prefix: Optional[str] = None) -> str:
    """
    Generate a unique ID with optional prefix

    Args:
        prefix: Optional prefix for the ID (e.g., 'TKT', 'USR')

    Returns:
        Unique ID string

    Examples:
        >>> generate_id('TKT')
        'TKT-a1b2c3d4e5f6'
        >>> generate_id()
        'a1b2c3d4e5f6'
    """
    unique_part = uuid.uuid4().hex[:12]

    if prefix:
        return f"{prefix}-{unique_part}"
    return unique_part


def generate_user_id() -> str:
    """Generate user ID"""
    return generate_id("USR")


def generate_department_id() -> str:
    """Generate department ID"""
    return generate_id("DEP")


def generate_ticket_id() -> str:
    """Generate ticket ID"""
    return generate_id("TKT")


def generate_comment_id() -> str:
    """Generate comment ID"""
    return generate_id("CMT")


def generate_notification_id() -> str:
    """Generate notification ID"""
    return generate_id("NTF")


def generate_correlation_id() -> str:
    """
    Generate a correlation ID for request tracing

    Returns:
        Correlation ID string with timestamp prefix
    """
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    unique_part = uuid.uuid4().hex[:8]
    return f"COR-{timestamp}-{unique_part}"

"""Utility functions."""

from leazr.utils.audit import get_client_ip, log_action
from leazr.utils.password import hash_password, verify_password

__all__ = [
    "hash_password",
    "verify_password",
    "log_action",
    "get_client_ip",
]

"""Resolve the tenant of an incoming request."""

import os
from typing import Mapping, Optional

from vesta.utils.errors import TenantResolutionError

ACCOUNT_ID_HEADER = os.environ.get("ACCOUNT_ID_HEADER", "X-Account-Id")


def _header(headers: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    for key, value in (headers or {}).items():
        if key.lower() == name.lower():
            return value
    return None


def get_current_account_id(headers: Optional[Mapping[str, str]]) -> int:
    """
    Account id set by the auth layer in front of the functions.

    Raises:
        TenantResolutionError: If the header is missing or not a positive integer
    """
    raw = _header(headers, ACCOUNT_ID_HEADER)
    if raw is None or not str(raw).strip():
        raise TenantResolutionError(f"Missing {ACCOUNT_ID_HEADER} header")

    try:
        account_id = int(str(raw).strip())
    except ValueError as e:
        raise TenantResolutionError(f"Invalid account id: {raw!r}") from e

    if account_id <= 0:
        raise TenantResolutionError(f"Invalid account id: {raw!r}")
    return account_id


def get_correlation_id(headers: Optional[Mapping[str, str]], header_name: str) -> Optional[str]:
    return _header(headers, header_name)

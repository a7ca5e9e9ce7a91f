"""Shared dependencies for API routes."""
from typing import Optional

from fastapi import Header

from app.utils.exceptions import AuthenticationError


async def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    # Identity is asserted by the upstream auth gateway
    if not x_user_id or not x_user_id.strip():
        raise AuthenticationError()
    return x_user_id.strip()

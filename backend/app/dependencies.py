"""
FastAPI dependencies.
"""

from typing import Optional

from fastapi import Header, HTTPException

from app.database import get_db

__all__ = ["get_db", "get_current_user_id"]


def get_current_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """
    Identify the requesting user.

    Sessions are handled in front of this service, which forwards the
    authenticated user in the X-User-Id header.
    """
    if not x_user_id:
        raise HTTPException(status_code=401, detail="unauthorized")
    return x_user_id

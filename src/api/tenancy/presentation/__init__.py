"""Tenancy presentation layer.

Registration and login live at the API root, guest session endpoints
under /session.
"""

from __future__ import annotations

from fastapi import APIRouter

from tenancy.presentation.errors import register_exception_handlers
from tenancy.presentation.routes import auth_router, session_router

router = APIRouter(prefix="/api")
router.include_router(auth_router)
router.include_router(session_router)

__all__ = ["register_exception_handlers", "router"]

"""Todos presentation layer."""

from todos.presentation.routes import router

__all__ = ["router"]

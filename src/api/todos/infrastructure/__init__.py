"""Todos infrastructure layer."""

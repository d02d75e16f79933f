"""Ports (protocols and exceptions) of the tenancy bounded context."""

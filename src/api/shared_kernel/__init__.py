"""Shared Kernel module.

Components both bounded contexts depend on: the layout of the todos
table inside every tenant store, and the tenant context a request is
attached to. Tenancy decides which store a request uses; todos only
ever sees the resulting store handle.
"""

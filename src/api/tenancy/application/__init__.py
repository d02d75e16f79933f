"""Tenancy application layer: routing, provisioning and session lifecycle."""

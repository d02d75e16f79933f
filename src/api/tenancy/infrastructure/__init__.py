"""Tenancy infrastructure: registry, store admin, pools and pool cache."""

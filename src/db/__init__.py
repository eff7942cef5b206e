"""Persistence for derived training records."""

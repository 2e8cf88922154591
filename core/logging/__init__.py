"""Audit trail persistence (SQLite)."""

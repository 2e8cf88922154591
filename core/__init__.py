"""Shared infrastructure: configuration, audit logging, helpers and the composition root."""

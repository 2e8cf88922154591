"""
Contracts feature.

Template-based contract creation, the dual-signature lifecycle (client and
contractor tracks), persistence, notifications and the audit trail.
"""

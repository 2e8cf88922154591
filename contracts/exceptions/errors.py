"""Contracts feature exceptions."""
from __future__ import annotations


class ContractsError(Exception):
    """Base exception for the contracts feature."""


class NotFoundError(ContractsError):
    """Raised when a template or contract id is unknown."""


class ValidationError(ContractsError):
    """Raised when input data or a template fails validation."""


class IllegalStateError(ContractsError):
    """Raised when an operation is not allowed in the contract's current status."""


class ConfigurationError(IllegalStateError):
    """Raised when a required collaborator (e.g. the renderer) is not wired."""


class ConcurrencyError(ContractsError):
    """Raised when a contract changed underneath an update and retries ran out."""

    def __init__(self, contract_id: str, expected_version: int | None = None) -> None:
        self.contract_id = contract_id
        self.expected_version = expected_version
        super().__init__(
            f"Contract {contract_id} was modified concurrently"
            + (f" (expected version {expected_version})" if expected_version is not None else "")
        )


class ExternalServiceError(ContractsError):
    """Raised when storage or a notification backend fails."""

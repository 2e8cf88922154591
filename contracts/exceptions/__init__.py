from contracts.exceptions.errors import (
    ConcurrencyError,
    ConfigurationError,
    ContractsError,
    ExternalServiceError,
    IllegalStateError,
    NotFoundError,
    ValidationError,
)

__all__ = [
    "ConcurrencyError",
    "ConfigurationError",
    "ContractsError",
    "ExternalServiceError",
    "IllegalStateError",
    "NotFoundError",
    "ValidationError",
]

"""Storage adapter abstraction.

Defines the persistence interface consumed by ContractService.
Allows switching between in-memory, SQLite or a remote store.
"""

from __future__ import annotations
import dataclasses
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from contracts.exceptions.errors import ValidationError
from contracts.models.contract_models import Contract, ContractFilters
from core.helpers.date_time_helper import utc_now


class StorageAdapter(ABC):
    """Abstract store for contracts."""

    @abstractmethod
    def create_contract(self, contract: Contract) -> Contract:
        """
        Persist a new contract.

        Args:
            contract: Fully built contract (id assigned by the service)

        Returns:
            Stored contract

        Raises:
            ExternalServiceError: backend failure or duplicate id
        """
        raise NotImplementedError

    @abstractmethod
    def get_contract(self, contract_id: str) -> Optional[Contract]:
        """
        Load a contract.

        Returns:
            Contract or None if not found
        """
        raise NotImplementedError

    @abstractmethod
    def list_contracts(self, filters: Optional[ContractFilters] = None) -> List[Contract]:
        """
        List contracts, newest first.

        Args:
            filters: Optional owner/admin/status/search filters
        """
        raise NotImplementedError

    @abstractmethod
    def update_contract(
        self,
        contract_id: str,
        fields: Dict[str, Any],
        *,
        expected_version: Optional[int] = None,
    ) -> Contract:
        """
        Apply a partial update and bump ``version``.

        Args:
            contract_id: Contract ID
            fields: Contract attribute names -> new values
            expected_version: If given, the update only applies when the
                stored version still matches (optimistic locking)

        Returns:
            Updated contract

        Raises:
            NotFoundError: unknown id
            ConcurrencyError: stored version differs from expected_version
            ExternalServiceError: backend failure
        """
        raise NotImplementedError

    @abstractmethod
    def delete_contract(self, contract_id: str) -> None:
        """
        Remove a contract.

        Raises:
            NotFoundError: unknown id
        """
        raise NotImplementedError

    def close(self) -> None:
        """Release backend resources (no-op by default)."""


# Fields no update may touch; contract_content is the legal snapshot.
IMMUTABLE_FIELDS = frozenset({"id", "contract_content", "created_at", "version", "template_id"})


def apply_update(contract: Contract, fields: Dict[str, Any]) -> Contract:
    """Return a copy of *contract* with *fields* applied and the version bumped."""
    known = {f.name for f in dataclasses.fields(Contract)}
    unknown = sorted(set(fields) - known)
    if unknown:
        raise ValidationError(f"Unknown contract field(s): {', '.join(unknown)}")
    frozen = sorted(set(fields) & IMMUTABLE_FIELDS)
    if frozen:
        raise ValidationError(f"Contract field(s) cannot be changed: {', '.join(frozen)}")
    changes = dict(fields)
    changes.setdefault("updated_at", utc_now())
    return dataclasses.replace(contract, version=contract.version + 1, **changes)

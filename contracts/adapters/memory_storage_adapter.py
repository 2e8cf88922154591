"""In-memory StorageAdapter for tests and single-process deployments."""

from __future__ import annotations

import dataclasses
import threading
from typing import Any, Dict, List, Optional

from contracts.adapters.storage_adapter import StorageAdapter, apply_update
from contracts.exceptions.errors import ConcurrencyError, ExternalServiceError, NotFoundError
from contracts.models.contract_models import Contract, ContractFilters


class InMemoryStorageAdapter(StorageAdapter):
    """Dict-backed store. Callers always receive copies."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: Dict[str, Contract] = {}

    def create_contract(self, contract: Contract) -> Contract:
        with self._lock:
            if contract.id in self._rows:
                raise ExternalServiceError(f"Contract already exists: {contract.id}")
            self._rows[contract.id] = dataclasses.replace(contract)
            return dataclasses.replace(contract)

    def get_contract(self, contract_id: str) -> Optional[Contract]:
        with self._lock:
            row = self._rows.get(contract_id)
            return dataclasses.replace(row) if row is not None else None

    def list_contracts(self, filters: Optional[ContractFilters] = None) -> List[Contract]:
        with self._lock:
            rows = [dataclasses.replace(c) for c in self._rows.values()]
        if filters is not None:
            rows = [c for c in rows if filters.matches(c)]
        return sorted(rows, key=lambda c: c.created_at, reverse=True)

    def update_contract(
        self,
        contract_id: str,
        fields: Dict[str, Any],
        *,
        expected_version: Optional[int] = None,
    ) -> Contract:
        with self._lock:
            current = self._rows.get(contract_id)
            if current is None:
                raise NotFoundError(f"Contract not found: {contract_id}")
            if expected_version is not None and current.version != expected_version:
                raise ConcurrencyError(contract_id, expected_version)
            updated = apply_update(current, fields)
            self._rows[contract_id] = updated
            return dataclasses.replace(updated)

    def delete_contract(self, contract_id: str) -> None:
        with self._lock:
            if self._rows.pop(contract_id, None) is None:
                raise NotFoundError(f"Contract not found: {contract_id}")

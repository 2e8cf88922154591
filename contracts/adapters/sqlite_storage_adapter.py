"""SQLite implementation of StorageAdapter.

Uses core.common.db_interface for connection management. Every write runs
in a ``BEGIN IMMEDIATE`` transaction and the version check is part of the
UPDATE statement, so concurrent writers from other processes cannot
interleave a read-modify-write on the same contract.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional

from contracts.adapters.storage_adapter import StorageAdapter, apply_update
from contracts.exceptions.errors import ConcurrencyError, ExternalServiceError, NotFoundError
from contracts.logic.encryption import SignatureCipher
from contracts.models.contract_models import Contract, ContractFilters
from contracts.models.mappers import contract_to_row, row_to_contract
from core.common.db_interface import SQLiteRepository
from core.helpers.date_time_helper import to_iso

_SCHEMA = """
CREATE TABLE IF NOT EXISTS contracts (
    id TEXT PRIMARY KEY,
    template_id TEXT,
    user_id TEXT,
    admin_id TEXT,
    client_name TEXT NOT NULL,
    client_email TEXT NOT NULL,
    client_address TEXT,
    contractor_name TEXT NOT NULL,
    contractor_email TEXT NOT NULL,
    contractor_address TEXT,
    project_name TEXT,
    project_description TEXT,
    project_location TEXT,
    start_date TEXT,
    end_date TEXT,
    total_amount TEXT,
    payment_terms TEXT,
    scope TEXT,
    contract_content TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'pending',
    client_signature_status TEXT NOT NULL DEFAULT 'not_requested',
    client_signature TEXT,
    client_signed_at TEXT,
    client_requested_at TEXT,
    contractor_signature_status TEXT NOT NULL DEFAULT 'not_requested',
    contractor_signature TEXT,
    contractor_signed_at TEXT,
    contractor_requested_at TEXT,
    user_comments TEXT,
    admin_notes TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    version INTEGER NOT NULL DEFAULT 1
);
CREATE INDEX IF NOT EXISTS idx_contracts_user ON contracts(user_id);
CREATE INDEX IF NOT EXISTS idx_contracts_status ON contracts(status);
"""


class SQLiteStorageAdapter(SQLiteRepository, StorageAdapter):
    """Contracts table in a SQLite file (or ``:memory:``)."""

    def __init__(self, db_path: str | Path, *, cipher: Optional[SignatureCipher] = None) -> None:
        """
        Args:
            db_path: Path to SQLite database file
            cipher: Encrypts signature images at rest when given
        """
        super().__init__(db_path)
        self._cipher = cipher
        self._ensure_schema()

    # ---- helpers -------------------------------------------------------- #
    def _ensure_schema(self) -> None:
        try:
            self.conn.executescript(_SCHEMA)
        except sqlite3.Error as exc:
            raise ExternalServiceError(f"Cannot initialise contract store: {exc}") from exc

    def _to_row(self, contract: Contract) -> Dict[str, Any]:
        encode = self._cipher.encrypt if self._cipher else (lambda v: v)
        return contract_to_row(contract, encode_image=encode)

    def _from_row(self, row: sqlite3.Row) -> Contract:
        decode = self._cipher.decrypt if self._cipher else (lambda v: v)
        return row_to_contract(dict(row), decode_image=decode)

    def _fetch(self, conn: sqlite3.Connection, contract_id: str) -> Optional[Contract]:
        row = conn.execute("SELECT * FROM contracts WHERE id = ?", (contract_id,)).fetchone()
        return self._from_row(row) if row else None

    # ---- StorageAdapter ------------------------------------------------- #
    def create_contract(self, contract: Contract) -> Contract:
        row = self._to_row(contract)
        columns = ", ".join(row.keys())
        placeholders = ", ".join(["?"] * len(row))
        try:
            with self.transaction() as conn:
                conn.execute(f"INSERT INTO contracts ({columns}) VALUES ({placeholders})", tuple(row.values()))
        except sqlite3.Error as exc:
            raise ExternalServiceError(f"Cannot store contract {contract.id}: {exc}") from exc
        return contract

    def get_contract(self, contract_id: str) -> Optional[Contract]:
        try:
            with self._lock:
                return self._fetch(self.conn, contract_id)
        except sqlite3.Error as exc:
            raise ExternalServiceError(f"Cannot load contract {contract_id}: {exc}") from exc

    def list_contracts(self, filters: Optional[ContractFilters] = None) -> List[Contract]:
        query = "SELECT * FROM contracts WHERE 1=1"
        params: list[object] = []
        if filters is not None:
            if filters.user_id is not None:
                query += " AND user_id = ?"
                params.append(filters.user_id)
            if filters.admin_id is not None:
                query += " AND admin_id = ?"
                params.append(filters.admin_id)
            if filters.status is not None:
                query += " AND status = ?"
                params.append(str(getattr(filters.status, "value", filters.status)))
            if filters.created_from is not None:
                query += " AND created_at >= ?"
                params.append(to_iso(filters.created_from))
            if filters.created_to is not None:
                query += " AND created_at <= ?"
                params.append(to_iso(filters.created_to))
            if filters.search:
                needle = f"%{filters.search.strip().lower()}%"
                query += " AND (lower(project_name) LIKE ? OR lower(client_name) LIKE ? OR lower(client_email) LIKE ?)"
                params.extend([needle, needle, needle])
        query += " ORDER BY created_at DESC, rowid DESC"
        try:
            with self._lock:
                rows = self.conn.execute(query, params).fetchall()
        except sqlite3.Error as exc:
            raise ExternalServiceError(f"Cannot list contracts: {exc}") from exc
        return [self._from_row(r) for r in rows]

    def update_contract(
        self,
        contract_id: str,
        fields: Dict[str, Any],
        *,
        expected_version: Optional[int] = None,
    ) -> Contract:
        try:
            with self.transaction() as conn:
                current = self._fetch(conn, contract_id)
                if current is None:
                    raise NotFoundError(f"Contract not found: {contract_id}")
                if expected_version is not None and current.version != expected_version:
                    raise ConcurrencyError(contract_id, expected_version)

                updated = apply_update(current, fields)
                row = self._to_row(updated)
                row.pop("id")
                set_clause = ", ".join(f"{key} = ?" for key in row)
                cursor = conn.execute(
                    f"UPDATE contracts SET {set_clause} WHERE id = ? AND version = ?",
                    tuple(row.values()) + (contract_id, current.version),
                )
                if cursor.rowcount != 1:
                    raise ConcurrencyError(contract_id, current.version)
        except sqlite3.Error as exc:
            raise ExternalServiceError(f"Cannot update contract {contract_id}: {exc}") from exc
        return updated

    def delete_contract(self, contract_id: str) -> None:
        try:
            with self.transaction() as conn:
                cursor = conn.execute("DELETE FROM contracts WHERE id = ?", (contract_id,))
                if cursor.rowcount == 0:
                    raise NotFoundError(f"Contract not found: {contract_id}")
        except sqlite3.Error as exc:
            raise ExternalServiceError(f"Cannot delete contract {contract_id}: {exc}") from exc

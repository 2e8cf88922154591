"""Audit trail for contract lifecycle events.

Subscribes to ContractService events and writes one entry per event to the
central ``AuditLogger``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict

from contracts.dto.contract_event import ContractEvent
from contracts.enum.contract_status import SignerRole

if TYPE_CHECKING:
    from core.logging.logic.logger import AuditLogger


class AuditService:
    FEATURE = "contracts"

    def __init__(self, audit_logger: "AuditLogger"):
        """
        Args:
            audit_logger: Shared audit logger from the composition root
        """
        self._log = audit_logger

    def __call__(self, event: ContractEvent) -> None:
        self.record(event)

    def record(self, event: ContractEvent) -> None:
        contract = event.contract
        details: Dict[str, Any] = {
            "status": contract.status.value,
            "client_signature": contract.client_signature.status.value,
            "contractor_signature": contract.contractor_signature.status.value,
            "version": contract.version,
        }
        if event.role is not None:
            details["role"] = event.role.value
        if event.previous_status is not None:
            details["previous_status"] = event.previous_status.value
        details.update(event.metadata)

        actor = contract.user_id if event.role == SignerRole.CLIENT else contract.admin_id
        self._log.log(
            self.FEATURE,
            event.type.value,
            actor=actor,
            reference_id=contract.id,
            message=event.to_log_string(),
            details=details,
        )

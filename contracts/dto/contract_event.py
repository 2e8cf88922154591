"""Lifecycle event DTO published by ContractService.

Subscribers (audit trail, notification workers, UI refresh) receive one
immutable ``ContractEvent`` per mutation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from contracts.enum.contract_status import ContractStatus, SignerRole
from contracts.models.contract_models import Contract
from core.helpers.date_time_helper import utc_now


class ContractEventType(str, Enum):
    CREATED = "created"
    SIGNED = "signed"
    SIGNATURE_REQUESTED = "signature_requested"
    STATUS_CHANGED = "status_changed"
    APPROVED = "approved"
    REJECTED = "rejected"
    ARCHIVED = "archived"
    DELETED = "deleted"

    @classmethod
    def for_status(cls, status: ContractStatus) -> "ContractEventType":
        """Administrative transitions publish an event named after the new status."""
        return cls(status.value)


@dataclass(frozen=True)
class ContractEvent:
    type: ContractEventType
    contract: Contract
    occurred_at: datetime = field(default_factory=utc_now)
    role: Optional[SignerRole] = None
    previous_status: Optional[ContractStatus] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        """Dotted name, e.g. ``contract:signed``."""
        return f"contract:{self.type.value}"

    def to_log_string(self) -> str:
        parts = [self.name, f"on {self.contract.id}", f"status={self.contract.status.value}"]
        if self.role is not None:
            parts.append(f"by {self.role.value}")
        if self.previous_status is not None and self.previous_status != self.contract.status:
            parts.append(f"(was {self.previous_status.value})")
        return " ".join(parts)

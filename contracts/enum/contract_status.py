"""Contract lifecycle statuses, signature track statuses and signer roles."""
from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet


class ContractStatus(str, Enum):
    """Overall status of a contract."""

    PENDING = "pending"
    SIGNED = "signed"
    APPROVED = "approved"
    REJECTED = "rejected"
    ARCHIVED = "archived"


class SignatureStatus(str, Enum):
    """Status of one party's signature track. Only moves forward."""

    NOT_REQUESTED = "not_requested"
    REQUESTED = "requested"
    SIGNED = "signed"

    @property
    def rank(self) -> int:
        return _TRACK_ORDER.index(self)


_TRACK_ORDER = (SignatureStatus.NOT_REQUESTED, SignatureStatus.REQUESTED, SignatureStatus.SIGNED)


class SignerRole(str, Enum):
    CLIENT = "client"
    CONTRACTOR = "contractor"

    @property
    def counterpart(self) -> "SignerRole":
        return SignerRole.CONTRACTOR if self is SignerRole.CLIENT else SignerRole.CLIENT

    @classmethod
    def parse(cls, value: "SignerRole | str") -> "SignerRole":
        """Accept enum members and strings; ``admin`` is an alias for contractor."""
        if isinstance(value, SignerRole):
            return value
        text = str(value or "").strip().lower()
        if text == "admin":
            return cls.CONTRACTOR
        return cls(text)


# Administrative transitions. SIGNED is only ever entered through signatures.
ALLOWED_TRANSITIONS: Dict[ContractStatus, FrozenSet[ContractStatus]] = {
    ContractStatus.PENDING: frozenset({ContractStatus.REJECTED, ContractStatus.ARCHIVED}),
    ContractStatus.SIGNED: frozenset(
        {ContractStatus.APPROVED, ContractStatus.REJECTED, ContractStatus.ARCHIVED}
    ),
    ContractStatus.APPROVED: frozenset({ContractStatus.ARCHIVED}),
    ContractStatus.REJECTED: frozenset({ContractStatus.ARCHIVED}),
    ContractStatus.ARCHIVED: frozenset(),
}

# Statuses in which signatures may still be collected.
SIGNABLE_STATUSES: FrozenSet[ContractStatus] = frozenset({ContractStatus.PENDING})


def can_transition(current: ContractStatus, target: ContractStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())

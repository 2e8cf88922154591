"""
Contract domain models.

Keeps the data layer independent from storage, notification and rendering
details. ``Contract`` instances handed out by the service are snapshots;
changes go through ``ContractService`` and the storage adapter.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from contracts.enum.contract_status import ContractStatus, SignatureStatus, SignerRole
from core.helpers.date_time_helper import utc_now


@dataclass(frozen=True)
class ContractTemplate:
    id: str
    name: str
    content: str
    category: str = "general"
    description: str = ""
    # data keys that must be present when a contract is created from this template
    required_fields: Tuple[str, ...] = ()
    # placeholder KEYs the template declares (without braces/brackets)
    placeholders: Tuple[str, ...] = ()
    is_default: bool = False
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContractTemplate":
        """Build a template from a JSON object (snake_case or camelCase keys)."""
        def pick(*names: str, default: Any = None) -> Any:
            for name in names:
                if name in data and data[name] is not None:
                    return data[name]
            return default

        return cls(
            id=str(data["id"]),
            name=str(pick("name", default=data["id"])),
            content=str(data["content"]),
            category=str(pick("category", default="general")),
            description=str(pick("description", default="")),
            required_fields=tuple(pick("required_fields", "requiredFields", default=())),
            placeholders=tuple(pick("placeholders", default=())),
            is_default=bool(pick("is_default", "isDefault", default=False)),
        )


@dataclass(frozen=True)
class Party:
    name: str
    email: str
    address: Optional[str] = None


@dataclass(frozen=True)
class SignatureTrack:
    status: SignatureStatus = SignatureStatus.NOT_REQUESTED
    # data URL or bare base64 of the raster signature
    image: Optional[str] = None
    signed_at: Optional[datetime] = None
    requested_at: Optional[datetime] = None

    @property
    def is_signed(self) -> bool:
        return self.status == SignatureStatus.SIGNED

    def requested(self, at: datetime) -> "SignatureTrack":
        return replace(self, status=SignatureStatus.REQUESTED, requested_at=at)

    def signed(self, image: str, at: datetime) -> "SignatureTrack":
        return replace(self, status=SignatureStatus.SIGNED, image=image, signed_at=at)


@dataclass
class Contract:
    id: str
    template_id: Optional[str]
    client: Party
    contractor: Party
    contract_content: str
    user_id: Optional[str] = None
    admin_id: Optional[str] = None

    # Project details
    project_name: str = ""
    project_description: Optional[str] = None
    project_location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    total_amount: Any = 0
    payment_terms: Optional[str] = None
    scope: Optional[str] = None

    status: ContractStatus = ContractStatus.PENDING
    client_signature: SignatureTrack = field(default_factory=SignatureTrack)
    contractor_signature: SignatureTrack = field(default_factory=SignatureTrack)

    # written by the client, read by the contractor/admin
    user_comments: Optional[str] = None
    # written by the contractor/admin, read by the client
    admin_notes: Optional[str] = None

    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    version: int = 1

    # ------------------------------------------------------------------ #
    def track(self, role: SignerRole) -> SignatureTrack:
        return self.client_signature if role == SignerRole.CLIENT else self.contractor_signature

    def party(self, role: SignerRole) -> Party:
        return self.client if role == SignerRole.CLIENT else self.contractor

    @staticmethod
    def track_field(role: SignerRole) -> str:
        return "client_signature" if role == SignerRole.CLIENT else "contractor_signature"

    @property
    def both_signed(self) -> bool:
        return self.client_signature.is_signed and self.contractor_signature.is_signed

    @property
    def display_name(self) -> str:
        return f"{self.project_name} ({self.id})" if self.project_name else self.id


@dataclass(frozen=True)
class CreateContractRequest:
    template_id: str
    client: Party
    contractor: Party
    data: Dict[str, Any] = field(default_factory=dict)
    user_id: Optional[str] = None
    admin_id: Optional[str] = None
    # signature of the authoring party; pre-signs the contractor track
    admin_signature: Optional[str | bytes] = None


@dataclass(frozen=True)
class ContractFilters:
    user_id: Optional[str] = None
    admin_id: Optional[str] = None
    status: Optional[ContractStatus] = None
    # case-insensitive match on project name, client name or client email
    search: Optional[str] = None
    created_from: Optional[datetime] = None
    created_to: Optional[datetime] = None

    def matches(self, contract: Contract) -> bool:
        if self.user_id is not None and contract.user_id != self.user_id:
            return False
        if self.admin_id is not None and contract.admin_id != self.admin_id:
            return False
        if self.status is not None and contract.status != ContractStatus(self.status):
            return False
        if self.created_from is not None and contract.created_at < self.created_from:
            return False
        if self.created_to is not None and contract.created_at > self.created_to:
            return False
        if self.search:
            needle = self.search.strip().lower()
            haystack = (contract.project_name, contract.client.name, contract.client.email)
            if not any(needle in (h or "").lower() for h in haystack):
                return False
        return True


@dataclass(frozen=True)
class ContractStatistics:
    total: int = 0
    pending: int = 0
    signed: int = 0
    approved: int = 0
    rejected: int = 0
    archived: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            "total": self.total,
            "pending": self.pending,
            "signed": self.signed,
            "approved": self.approved,
            "rejected": self.rejected,
            "archived": self.archived,
        }

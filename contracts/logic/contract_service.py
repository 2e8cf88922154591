# contracts/logic/contract_service.py
"""
Contract lifecycle: creation from templates, the two signature tracks and
administrative status transitions.

Rules:
- ``contract_content`` is resolved once at creation and never changes.
- The overall status becomes SIGNED exactly when both tracks are signed;
  the check reads the other track inside the same serialized update.
- Every mutation publishes a ``ContractEvent`` and attempts one notification.
  Notification failures are logged and never undo a committed change.
"""

from __future__ import annotations

import base64
import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from contracts.adapters.notifier import NullNotifier, Notifier
from contracts.adapters.storage_adapter import StorageAdapter
from contracts.dto.contract_event import ContractEvent, ContractEventType
from contracts.enum.contract_status import (
    SIGNABLE_STATUSES,
    ContractStatus,
    SignerRole,
    can_transition,
)
from contracts.exceptions.errors import (
    ConcurrencyError,
    ConfigurationError,
    IllegalStateError,
    NotFoundError,
    ValidationError,
)
from contracts.logic.id_generator import ContractIdGenerator
from contracts.logic.template_engine import TemplateEngine, normalize_field_name, normalize_fields
from contracts.models.contract_models import (
    Contract,
    ContractFilters,
    ContractStatistics,
    CreateContractRequest,
    SignatureTrack,
)
from core.common.event_bus import EventBus
from core.common.keyed_lock import KeyedLock
from core.helpers.date_time_helper import utc_now

logger = logging.getLogger(__name__)

EventCallback = Callable[[ContractEvent], None]


class ContractRenderer(Protocol):
    """Anything that turns a contract into a rendered document."""

    def render(self, contract: Contract) -> Any: ...


def _text_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    text = str(value).strip()
    return text or None


def _mime_for(data: bytes) -> str:
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return "image/png"
    if data[:3] == b"\xff\xd8\xff":
        return "image/jpeg"
    if data[:3] == b"GIF":
        return "image/gif"
    return "application/octet-stream"


def normalize_signature_image(image: Any) -> str:
    """Signature images are stored as text: data URLs or bare base64."""
    if isinstance(image, (bytes, bytearray)):
        if not image:
            raise ValidationError("Signature image is empty")
        data = bytes(image)
        return f"data:{_mime_for(data)};base64,{base64.b64encode(data).decode('ascii')}"
    text = str(image).strip() if image is not None else ""
    if not text:
        raise ValidationError("Signature image is required")
    return text


class ContractService:
    def __init__(
        self,
        *,
        engine: TemplateEngine,
        storage: StorageAdapter,
        notifier: Optional[Notifier] = None,
        renderer: Optional[ContractRenderer] = None,
        id_generator: Optional[ContractIdGenerator] = None,
        events: Optional[EventBus[ContractEvent]] = None,
        locks: Optional[KeyedLock] = None,
        clock: Callable[[], datetime] = utc_now,
        max_conflict_retries: int = 3,
    ) -> None:
        self._engine = engine
        self._storage = storage
        self._notifier = notifier or NullNotifier()
        self._renderer = renderer
        self._ids = id_generator or ContractIdGenerator()
        self._events: EventBus[ContractEvent] = events if events is not None else EventBus()
        self._locks = locks or KeyedLock()
        self._clock = clock
        self._max_conflict_retries = max_conflict_retries

    # ---- observers ------------------------------------------------------ #
    def subscribe(self, callback: EventCallback) -> None:
        self._events.subscribe(callback)

    def unsubscribe(self, callback: EventCallback) -> None:
        self._events.unsubscribe(callback)

    def set_renderer(self, renderer: Optional[ContractRenderer]) -> None:
        self._renderer = renderer

    # ---- queries -------------------------------------------------------- #
    def get_contract(self, contract_id: str) -> Contract:
        contract = self._storage.get_contract(contract_id)
        if contract is None:
            raise NotFoundError(f"Contract not found: {contract_id}")
        return contract

    def list_contracts(self, filters: Optional[ContractFilters] = None) -> List[Contract]:
        return self._storage.list_contracts(filters)

    def get_statistics(self, user_id: Optional[str] = None, admin_id: Optional[str] = None) -> ContractStatistics:
        """Counts by status over all contracts, or those of one user/admin."""
        filters = None
        if user_id is not None or admin_id is not None:
            filters = ContractFilters(user_id=user_id, admin_id=admin_id)
        counts = {status: 0 for status in ContractStatus}
        contracts = self._storage.list_contracts(filters)
        for contract in contracts:
            counts[contract.status] += 1
        return ContractStatistics(
            total=len(contracts),
            pending=counts[ContractStatus.PENDING],
            signed=counts[ContractStatus.SIGNED],
            approved=counts[ContractStatus.APPROVED],
            rejected=counts[ContractStatus.REJECTED],
            archived=counts[ContractStatus.ARCHIVED],
        )

    # ---- creation ------------------------------------------------------- #
    def create_contract(self, request: CreateContractRequest) -> Contract:
        """
        Resolve the template and store a new pending contract.

        Raises:
            NotFoundError: unknown template
            ValidationError: party data or template required fields missing
        """
        template = self._engine.registry.require_template(request.template_id)

        if not request.client.name or not request.client.email:
            raise ValidationError("Client name and e-mail are required")

        # party data is authoritative over same-named data fields
        party_fields: Dict[str, Any] = {
            "client_name": request.client.name,
            "client_email": request.client.email,
            "contractor_name": request.contractor.name,
            "contractor_email": request.contractor.email,
        }
        if request.client.address:
            party_fields["client_address"] = request.client.address
        fields = normalize_fields(request.data)
        fields.update(party_fields)

        missing = [
            key for key in template.required_fields
            if _text_or_none(fields.get(normalize_field_name(key))) is None
        ]
        if missing:
            raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

        contract_id = self._ids.next_id()
        fields["contract_id"] = contract_id
        # raw keys keep custom camelCase fields reachable as e.g. {{PERMITNUMBER}}
        engine_data = {**request.data, **party_fields, "contract_id": contract_id}
        content = self._engine.resolve(template, engine_data)

        now = self._clock()
        contractor_track = SignatureTrack()
        if request.admin_signature is not None:
            contractor_track = contractor_track.signed(normalize_signature_image(request.admin_signature), now)

        contract = Contract(
            id=contract_id,
            template_id=template.id,
            client=request.client,
            contractor=request.contractor,
            contract_content=content,
            user_id=request.user_id,
            admin_id=request.admin_id,
            project_name=_text_or_none(fields.get("project_name")) or "",
            project_description=_text_or_none(fields.get("project_description")),
            project_location=_text_or_none(fields.get("project_location")),
            start_date=_text_or_none(fields.get("start_date")),
            end_date=_text_or_none(fields.get("end_date")),
            total_amount=fields.get("total_amount") or 0,
            payment_terms=_text_or_none(fields.get("payment_terms")),
            scope=_text_or_none(fields.get("scope")),
            status=ContractStatus.PENDING,
            contractor_signature=contractor_track,
            created_at=now,
            updated_at=now,
        )
        stored = self._storage.create_contract(contract)
        logger.info("Contract %s created from template %s", stored.id, template.id)

        self._publish(ContractEventType.CREATED, stored)
        self._notify("send_contract_notification", stored, stored.client)
        return stored

    # ---- signatures ----------------------------------------------------- #
    def sign_contract(
        self,
        contract_id: str,
        role: SignerRole | str,
        signature_image: str | bytes,
        comments: Optional[str] = None,
    ) -> Contract:
        """
        Sign the track of *role* and flip the status to SIGNED when the
        other track is already signed.

        Raises:
            NotFoundError: unknown contract
            ValidationError: empty signature image
            IllegalStateError: track already signed or contract not signable
            ConcurrencyError: concurrent updates kept winning
        """
        role = self._parse_role(role)
        self.get_contract(contract_id)
        image = normalize_signature_image(signature_image)

        def changes(current: Contract) -> Dict[str, Any]:
            track = current.track(role)
            if track.is_signed:
                raise IllegalStateError(f"{role.value} has already signed contract {contract_id}")
            if current.status not in SIGNABLE_STATUSES:
                raise IllegalStateError(
                    f"Contract {contract_id} cannot be signed in status {current.status.value}"
                )
            result: Dict[str, Any] = {Contract.track_field(role): track.signed(image, self._clock())}
            if comments:
                result["user_comments" if role == SignerRole.CLIENT else "admin_notes"] = comments
            if current.track(role.counterpart).is_signed:
                result["status"] = ContractStatus.SIGNED
            return result

        previous, updated = self._update_serialized(contract_id, changes)
        logger.info("Contract %s signed by %s", contract_id, role.value)

        self._publish(ContractEventType.SIGNED, updated, role=role, previous_status=previous.status)
        if updated.status != previous.status:
            self._publish(ContractEventType.STATUS_CHANGED, updated, role=role, previous_status=previous.status)
        self._notify("send_signature_notification", updated, updated.party(role.counterpart), role)
        return updated

    def request_signature(self, contract_id: str, role: SignerRole | str) -> Contract:
        """Mark *role*'s track as requested and notify that party."""
        role = self._parse_role(role)

        def changes(current: Contract) -> Dict[str, Any]:
            track = current.track(role)
            if track.is_signed:
                raise IllegalStateError(f"{role.value} has already signed contract {contract_id}")
            if current.status not in SIGNABLE_STATUSES:
                raise IllegalStateError(
                    f"Signatures cannot be requested in status {current.status.value}"
                )
            return {Contract.track_field(role): track.requested(self._clock())}

        previous, updated = self._update_serialized(contract_id, changes)
        self._publish(ContractEventType.SIGNATURE_REQUESTED, updated, role=role, previous_status=previous.status)
        self._notify("send_signature_request", updated, updated.party(role))
        return updated

    # ---- administration ------------------------------------------------- #
    def update_contract_status(
        self,
        contract_id: str,
        status: ContractStatus | str,
        comments: Optional[str] = None,
    ) -> Contract:
        """
        Administrative transition (approve, reject, archive).

        Raises:
            ValidationError: unknown status, or SIGNED (set only by signatures)
            IllegalStateError: transition not allowed from the current status
        """
        try:
            target = ContractStatus(status)
        except ValueError as exc:
            raise ValidationError(f"Unknown contract status: {status}") from exc
        if target == ContractStatus.SIGNED:
            raise ValidationError("Status 'signed' is reached only when both parties have signed")

        def changes(current: Contract) -> Dict[str, Any]:
            if not can_transition(current.status, target):
                raise IllegalStateError(
                    f"Contract {contract_id} cannot move from {current.status.value} to {target.value}"
                )
            result: Dict[str, Any] = {"status": target}
            if comments:
                result["admin_notes"] = comments
            return result

        previous, updated = self._update_serialized(contract_id, changes)
        logger.info("Contract %s: %s -> %s", contract_id, previous.status.value, target.value)

        self._publish(ContractEventType.for_status(target), updated, previous_status=previous.status)
        self._notify("send_status_update_notification", updated)
        return updated

    def delete_contract(self, contract_id: str) -> None:
        """Remove a contract; only pending contracts may be deleted."""
        with self._locks.hold(contract_id):
            contract = self.get_contract(contract_id)
            if contract.status != ContractStatus.PENDING:
                raise IllegalStateError(
                    f"Contract {contract_id} is {contract.status.value}; only pending contracts can be deleted"
                )
            self._storage.delete_contract(contract_id)
        logger.info("Contract %s deleted", contract_id)
        self._publish(ContractEventType.DELETED, contract)

    # ---- rendering ------------------------------------------------------ #
    def generate_pdf(self, contract_id: str) -> Any:
        """
        Render the contract with the configured renderer.

        Raises:
            ConfigurationError: no renderer wired
            NotFoundError: unknown contract
        """
        if self._renderer is None:
            raise ConfigurationError("No document renderer configured")
        return self._renderer.render(self.get_contract(contract_id))

    # ---- helpers -------------------------------------------------------- #
    def _update_serialized(
        self,
        contract_id: str,
        build_changes: Callable[[Contract], Dict[str, Any]],
    ) -> Tuple[Contract, Contract]:
        """
        Read, compute and write one contract under the per-id lock with an
        optimistic version check; re-evaluate on conflicts from other
        processes. Returns (previous, updated).
        """
        attempts = self._max_conflict_retries + 1
        for attempt in range(1, attempts + 1):
            with self._locks.hold(contract_id):
                current = self.get_contract(contract_id)
                changes = build_changes(current)
                try:
                    updated = self._storage.update_contract(
                        contract_id, changes, expected_version=current.version
                    )
                except ConcurrencyError:
                    if attempt >= attempts:
                        raise
                    logger.info("Version conflict on %s, retrying (%d/%d)", contract_id, attempt, attempts)
                    continue
                return current, updated
        raise ConcurrencyError(contract_id)

    @staticmethod
    def _parse_role(role: SignerRole | str) -> SignerRole:
        try:
            return SignerRole.parse(role)
        except ValueError as exc:
            raise ValidationError(f"Unknown signer role: {role}") from exc

    def _publish(self, event_type: ContractEventType, contract: Contract, **kwargs: Any) -> None:
        self._events.publish(ContractEvent(type=event_type, contract=contract, **kwargs))

    def _notify(self, operation: str, *args: Any) -> None:
        try:
            getattr(self._notifier, operation)(*args)
        except Exception:
            contract = args[0] if args else None
            logger.warning(
                "Notification %s for %s failed", operation, getattr(contract, "id", "?"), exc_info=True
            )

"""
contracts/tests/test_contract_service.py

Lifecycle tests for ContractService: creation, the two signature tracks,
administrative transitions, deletion and notification isolation.
"""

from __future__ import annotations

import threading
import unittest
from typing import Any, List, Tuple

from contracts.adapters.memory_storage_adapter import InMemoryStorageAdapter
from contracts.adapters.notifier import Notifier
from contracts.dto.contract_event import ContractEvent, ContractEventType
from contracts.enum.contract_status import ContractStatus, SignatureStatus, SignerRole
from contracts.exceptions.errors import (
    ConcurrencyError,
    ConfigurationError,
    IllegalStateError,
    NotFoundError,
    ValidationError,
)
from contracts.logic.contract_service import ContractService, normalize_signature_image
from contracts.logic.template_engine import TemplateEngine
from contracts.logic.template_registry import TemplateRegistry
from contracts.models.contract_models import (
    ContractFilters,
    ContractTemplate,
    CreateContractRequest,
    Party,
)

SIGNATURE = "data:image/png;base64,iVBORw0KGgo="

TEMPLATE = ContractTemplate(
    id="residential",
    name="Residential",
    content=(
        "Contract {{CONTRACT_ID}} between {{CLIENT_NAME}} and [CONTRACTOR_NAME]\n"
        "Total: {{TOTAL_AMOUNT}}\n"
        "Client: ____\n"
        "Contractor: ____"
    ),
    required_fields=("projectName",),
)


class RecordingNotifier(Notifier):
    def __init__(self) -> None:
        self.calls: List[Tuple[str, Any]] = []

    def send_contract_notification(self, contract, recipient) -> None:
        self.calls.append(("created", recipient.email))

    def send_signature_request(self, contract, recipient) -> None:
        self.calls.append(("request", recipient.email))

    def send_signature_notification(self, contract, recipient, signer_role) -> None:
        self.calls.append(("signed", recipient.email))

    def send_status_update_notification(self, contract) -> None:
        self.calls.append(("status", contract.status.value))


class FailingNotifier(RecordingNotifier):
    def send_contract_notification(self, contract, recipient) -> None:
        raise RuntimeError("smtp down")

    def send_signature_notification(self, contract, recipient, signer_role) -> None:
        raise RuntimeError("smtp down")

    def send_status_update_notification(self, contract) -> None:
        raise RuntimeError("smtp down")


class ConflictOnceStorage(InMemoryStorageAdapter):
    """Simulates another process winning the first update race."""

    def __init__(self) -> None:
        super().__init__()
        self.conflicts = 1

    def update_contract(self, contract_id, fields, *, expected_version=None):
        if self.conflicts:
            self.conflicts -= 1
            raise ConcurrencyError(contract_id, expected_version)
        return super().update_contract(contract_id, fields, expected_version=expected_version)


def _request(**overrides: Any) -> CreateContractRequest:
    values = dict(
        template_id="residential",
        client=Party("Acme Corp", "client@acme.test"),
        contractor=Party("Builders LLC", "admin@builders.test"),
        data={"projectName": "Kitchen", "totalAmount": 1500},
        user_id="u1",
        admin_id="a1",
    )
    values.update(overrides)
    return CreateContractRequest(**values)


class TestContractService(unittest.TestCase):
    def setUp(self) -> None:
        self.storage = InMemoryStorageAdapter()
        self.notifier = RecordingNotifier()
        self.events: List[ContractEvent] = []
        self.service = ContractService(
            engine=TemplateEngine(TemplateRegistry([TEMPLATE])),
            storage=self.storage,
            notifier=self.notifier,
        )
        self.service.subscribe(self.events.append)

    # ---- creation ---- #
    def test_create_resolves_template_and_starts_pending(self) -> None:
        contract = self.service.create_contract(_request())
        self.assertTrue(contract.id.startswith("CONTRACT_"))
        self.assertEqual(contract.status, ContractStatus.PENDING)
        self.assertIn(f"Contract {contract.id} between Acme Corp and Builders LLC", contract.contract_content)
        self.assertIn("Total: $1,500.00", contract.contract_content)
        self.assertEqual(contract.project_name, "Kitchen")
        self.assertEqual(contract.client_signature.status, SignatureStatus.NOT_REQUESTED)
        self.assertEqual(self.events[-1].type, ContractEventType.CREATED)
        self.assertEqual(self.notifier.calls, [("created", "client@acme.test")])

    def test_create_validations(self) -> None:
        with self.assertRaises(NotFoundError):
            self.service.create_contract(_request(template_id="missing"))
        with self.assertRaises(ValidationError):
            self.service.create_contract(_request(client=Party("", "client@acme.test")))
        with self.assertRaises(ValidationError) as ctx:
            self.service.create_contract(_request(data={"totalAmount": 5}))
        self.assertIn("projectName", str(ctx.exception))
        self.assertEqual(self.service.list_contracts(), [])

    def test_admin_signature_presigns_contractor_track(self) -> None:
        contract = self.service.create_contract(_request(admin_signature=SIGNATURE))
        self.assertTrue(contract.contractor_signature.is_signed)
        self.assertEqual(contract.status, ContractStatus.PENDING)

    def test_content_is_a_snapshot(self) -> None:
        contract = self.service.create_contract(_request())
        self.service._engine.register_template(
            ContractTemplate("residential", "Residential", "changed", required_fields=("projectName",))
        )
        self.assertEqual(self.service.get_contract(contract.id).contract_content, contract.contract_content)

    # ---- signatures ---- #
    def test_client_only_signature_leaves_pending(self) -> None:
        contract = self.service.create_contract(_request())
        signed = self.service.sign_contract(contract.id, "client", SIGNATURE, comments="Looks good")
        self.assertEqual(signed.status, ContractStatus.PENDING)
        self.assertEqual(signed.client_signature.status, SignatureStatus.SIGNED)
        self.assertEqual(signed.contractor_signature.status, SignatureStatus.NOT_REQUESTED)
        self.assertEqual(signed.user_comments, "Looks good")
        self.assertEqual(self.notifier.calls[-1], ("signed", "admin@builders.test"))

    def test_both_orders_end_signed(self) -> None:
        for first, second in ((SignerRole.CLIENT, SignerRole.CONTRACTOR), (SignerRole.CONTRACTOR, SignerRole.CLIENT)):
            contract = self.service.create_contract(_request())
            self.service.sign_contract(contract.id, first, SIGNATURE)
            final = self.service.sign_contract(contract.id, second, SIGNATURE)
            self.assertEqual(final.status, ContractStatus.SIGNED)
            self.assertTrue(final.both_signed)
        status_events = [e for e in self.events if e.type == ContractEventType.STATUS_CHANGED]
        self.assertEqual(len(status_events), 2)
        self.assertEqual(status_events[0].previous_status, ContractStatus.PENDING)

    def test_double_signing_is_rejected(self) -> None:
        contract = self.service.create_contract(_request())
        self.service.sign_contract(contract.id, "client", SIGNATURE)
        with self.assertRaises(IllegalStateError):
            self.service.sign_contract(contract.id, "client", SIGNATURE)

    def test_signing_requires_image_and_known_contract(self) -> None:
        contract = self.service.create_contract(_request())
        with self.assertRaises(ValidationError):
            self.service.sign_contract(contract.id, "client", "  ")
        with self.assertRaises(NotFoundError):
            self.service.sign_contract("CONTRACT_0_missing", "client", SIGNATURE)

    def test_admin_alias_signs_contractor_track(self) -> None:
        contract = self.service.create_contract(_request())
        signed = self.service.sign_contract(contract.id, "admin", SIGNATURE, comments="Countersigned")
        self.assertTrue(signed.contractor_signature.is_signed)
        self.assertEqual(signed.admin_notes, "Countersigned")

    def test_unknown_role_is_a_validation_error(self) -> None:
        contract = self.service.create_contract(_request())
        with self.assertRaises(ValidationError):
            self.service.sign_contract(contract.id, "witness", SIGNATURE)
        with self.assertRaises(ValidationError):
            self.service.request_signature(contract.id, "witness")
        self.assertEqual(self.service.get_contract(contract.id).version, contract.version)

    def test_rejected_contract_cannot_be_signed(self) -> None:
        contract = self.service.create_contract(_request())
        self.service.update_contract_status(contract.id, "rejected")
        with self.assertRaises(IllegalStateError):
            self.service.sign_contract(contract.id, "client", SIGNATURE)

    def test_request_signature(self) -> None:
        contract = self.service.create_contract(_request())
        updated = self.service.request_signature(contract.id, SignerRole.CLIENT)
        self.assertEqual(updated.client_signature.status, SignatureStatus.REQUESTED)
        self.assertIsNotNone(updated.client_signature.requested_at)
        self.assertEqual(self.notifier.calls[-1], ("request", "client@acme.test"))

    def test_concurrent_signatures_end_signed(self) -> None:
        contract = self.service.create_contract(_request())
        barrier = threading.Barrier(2)
        errors: List[BaseException] = []

        def sign(role: SignerRole) -> None:
            barrier.wait()
            try:
                self.service.sign_contract(contract.id, role, SIGNATURE)
            except BaseException as exc:  # pragma: no cover - reported below
                errors.append(exc)

        threads = [threading.Thread(target=sign, args=(r,)) for r in SignerRole]
        for t in threads:
            t.start()
        for t in threads:
            t.join(5)
        self.assertEqual(errors, [])
        self.assertEqual(self.service.get_contract(contract.id).status, ContractStatus.SIGNED)

    def test_version_conflict_is_retried(self) -> None:
        storage = ConflictOnceStorage()
        service = ContractService(engine=TemplateEngine(TemplateRegistry([TEMPLATE])), storage=storage)
        contract = service.create_contract(_request())
        signed = service.sign_contract(contract.id, "client", SIGNATURE)
        self.assertTrue(signed.client_signature.is_signed)
        self.assertEqual(signed.version, contract.version + 1)

    # ---- administration ---- #
    def test_status_transitions(self) -> None:
        contract = self.service.create_contract(_request())
        with self.assertRaises(IllegalStateError):
            self.service.update_contract_status(contract.id, "approved")
        with self.assertRaises(ValidationError):
            self.service.update_contract_status(contract.id, "signed")
        with self.assertRaises(ValidationError):
            self.service.update_contract_status(contract.id, "bogus")

        self.service.sign_contract(contract.id, "client", SIGNATURE)
        self.service.sign_contract(contract.id, "contractor", SIGNATURE)
        approved = self.service.update_contract_status(contract.id, ContractStatus.APPROVED, comments="Go")
        self.assertEqual(approved.status, ContractStatus.APPROVED)
        self.assertEqual(approved.admin_notes, "Go")
        self.assertEqual(self.events[-1].type, ContractEventType.APPROVED)
        self.assertEqual(self.notifier.calls[-1], ("status", "approved"))

        archived = self.service.update_contract_status(contract.id, "archived")
        self.assertEqual(archived.status, ContractStatus.ARCHIVED)
        with self.assertRaises(IllegalStateError):
            self.service.update_contract_status(contract.id, "rejected")

    def test_delete_only_pending(self) -> None:
        pending = self.service.create_contract(_request())
        self.service.delete_contract(pending.id)
        with self.assertRaises(NotFoundError):
            self.service.get_contract(pending.id)
        self.assertEqual(self.events[-1].type, ContractEventType.DELETED)

        rejected = self.service.create_contract(_request())
        self.service.update_contract_status(rejected.id, "rejected")
        with self.assertRaises(IllegalStateError):
            self.service.delete_contract(rejected.id)

    def test_listing_and_statistics(self) -> None:
        a = self.service.create_contract(_request())
        self.service.create_contract(_request(user_id="u2", data={"projectName": "Deck"}))
        self.service.update_contract_status(a.id, "rejected")

        self.assertEqual(len(self.service.list_contracts(ContractFilters(user_id="u1"))), 1)
        self.assertEqual(
            [c.project_name for c in self.service.list_contracts(ContractFilters(search="deck"))], ["Deck"]
        )
        stats = self.service.get_statistics()
        self.assertEqual(stats.as_dict(), {
            "total": 2, "pending": 1, "signed": 0, "approved": 0, "rejected": 1, "archived": 0,
        })
        self.assertEqual(self.service.get_statistics(user_id="u2").pending, 1)

    # ---- notifications / rendering ---- #
    def test_notification_failure_does_not_roll_back(self) -> None:
        service = ContractService(
            engine=TemplateEngine(TemplateRegistry([TEMPLATE])),
            storage=InMemoryStorageAdapter(),
            notifier=FailingNotifier(),
        )
        contract = service.create_contract(_request())
        service.sign_contract(contract.id, "client", SIGNATURE)
        final = service.sign_contract(contract.id, "contractor", SIGNATURE)
        self.assertEqual(final.status, ContractStatus.SIGNED)
        self.assertEqual(service.update_contract_status(contract.id, "approved").status, ContractStatus.APPROVED)

    def test_failing_subscriber_does_not_break_operation(self) -> None:
        def broken(event: ContractEvent) -> None:
            raise RuntimeError("subscriber bug")

        self.service.subscribe(broken)
        contract = self.service.create_contract(_request())
        self.assertEqual(self.service.get_contract(contract.id).id, contract.id)
        self.service.unsubscribe(broken)

    def test_generate_pdf_requires_renderer(self) -> None:
        contract = self.service.create_contract(_request())
        with self.assertRaises(ConfigurationError):
            self.service.generate_pdf(contract.id)

        class EchoRenderer:
            def render(self, c):
                return c.id

        self.service.set_renderer(EchoRenderer())
        self.assertEqual(self.service.generate_pdf(contract.id), contract.id)


def test_normalize_signature_image() -> None:
    png = b"\x89PNG\r\n\x1a\nrest"
    assert normalize_signature_image(png).startswith("data:image/png;base64,")
    assert normalize_signature_image(" abc ") == "abc"


if __name__ == "__main__":
    unittest.main()

"""
core/tests/test_app_context.py

End-to-end wiring through the composition root: SQLite store, audit trail,
queued e-mail notifications and PDF rendering.
"""

from __future__ import annotations

import json
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from contracts.adapters.mail_transport import OutboxMailTransport
from contracts.adapters.notifier import NullNotifier
from contracts.enum.contract_status import ContractStatus
from contracts.logic.notification_dispatcher import NotificationDispatcher
from contracts.models.contract_models import CreateContractRequest, Party
from core.common.app_context import AppContext
from core.config.config_service import ConfigService

SIGNATURE = "data:image/png;base64,iVBORw0KGgo="


class TestAppContext(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = TemporaryDirectory()
        tmp = Path(self._tmp.name)
        templates = tmp / "templates"
        templates.mkdir()
        (templates / "residential.json").write_text(json.dumps({
            "id": "residential",
            "name": "Residential",
            "content": "Agreement for {{PROJECT_NAME}}\n\nClient: {{CLIENT_NAME}}\nContractor: [CONTRACTOR_NAME]",
        }), encoding="utf-8")
        self.environ = {
            "CONTRACTS_DATABASE__CONTRACTS": str(tmp / "db" / "contracts.db"),
            "CONTRACTS_DATABASE__AUDIT": str(tmp / "db" / "audit.db"),
            "CONTRACTS_TEMPLATES__DIRECTORY": str(templates),
            "CONTRACTS_RENDERER__WATERMARK": "DRAFT",
        }
        self.missing = tmp / "missing.ini"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _config(self, **extra: str) -> ConfigService:
        environ = dict(self.environ, **extra)
        return ConfigService(defaults_ini=None, machine_ini=None, user_ini=self.missing, environ=environ)

    def test_full_lifecycle(self) -> None:
        outbox = OutboxMailTransport()
        with AppContext.create(self._config(), transport=outbox) as ctx:
            self.assertIsInstance(ctx.notifier, NotificationDispatcher)
            self.assertIs(ctx.get_service("contracts"), ctx.contracts)

            contract = ctx.contracts.create_contract(CreateContractRequest(
                template_id="residential",
                client=Party("Acme Corp", "client@acme.test"),
                contractor=Party("Builders LLC", "admin@builders.test"),
                data={"projectName": "Kitchen"},
                user_id="u1",
                admin_id="a1",
            ))
            ctx.contracts.sign_contract(contract.id, "client", SIGNATURE)
            final = ctx.contracts.sign_contract(contract.id, "contractor", SIGNATURE)
            self.assertEqual(final.status, ContractStatus.SIGNED)

            document = ctx.contracts.generate_pdf(contract.id)
            self.assertTrue(document.to_bytes().startswith(b"%PDF"))

            self.assertTrue(ctx.notifier.flush(5))
            recipients = [m.to[0] for m in outbox.sent]
            self.assertEqual(recipients, ["client@acme.test", "admin@builders.test", "client@acme.test"])

            events = [e.event for e in ctx.audit_logger.query_logs(reference_id=contract.id)]
            self.assertEqual(events, ["status_changed", "signed", "signed", "created"])

    def test_notifications_can_be_disabled(self) -> None:
        ctx = AppContext.create(self._config(CONTRACTS_NOTIFICATIONS__ENABLED="false"))
        try:
            self.assertIsInstance(ctx.notifier, NullNotifier)
            self.assertEqual(len(ctx.registry), 1)
            self.assertEqual(ctx.renderer.config.watermark, "DRAFT")
        finally:
            ctx.close()
            ctx.close()


if __name__ == "__main__":
    unittest.main()

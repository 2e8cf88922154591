# core/common/app_context.py
"""
Composition root.

Wires configuration, storage, audit trail, notifications, the PDF renderer
and the ContractService exactly once. Front ends (CLI, HTTP, tests) create an
``AppContext`` and talk to ``ctx.contracts``; nothing else builds services.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

from contracts.adapters.email_notifier import EmailNotifier
from contracts.adapters.mail_transport import MailTransport, OutboxMailTransport, SmtpMailTransport
from contracts.adapters.notifier import Notifier, NullNotifier
from contracts.adapters.sqlite_storage_adapter import SQLiteStorageAdapter
from contracts.adapters.storage_adapter import StorageAdapter
from contracts.logic.audit_service import AuditService
from contracts.logic.contract_service import ContractService
from contracts.logic.encryption import SignatureCipher
from contracts.logic.notification_dispatcher import NotificationDispatcher
from contracts.logic.template_engine import TemplateEngine
from contracts.logic.template_registry import TemplateRegistry
from core.config.config_service import ConfigService, get_config_service
from core.logging.logic.logger import AuditLogger
from rendering.logic.pdf_renderer import DocumentRenderer
from rendering.models.renderer_config import RendererConfig

logger = logging.getLogger(__name__)


class AppContext:
    """Central runtime context (no GUI state)."""

    def __init__(
        self,
        *,
        config: ConfigService,
        registry: TemplateRegistry,
        engine: TemplateEngine,
        storage: StorageAdapter,
        audit_logger: AuditLogger,
        notifier: Notifier,
        renderer: DocumentRenderer,
        contracts: ContractService,
    ) -> None:
        self.config = config
        self.registry = registry
        self.engine = engine
        self.storage = storage
        self.audit_logger = audit_logger
        self.notifier = notifier
        self.renderer = renderer
        self.contracts = contracts

        # ---------- Service registry for lookups by name ----------------
        self.services: Dict[str, object] = {
            "config": config,
            "templates": registry,
            "template_engine": engine,
            "storage": storage,
            "audit_logger": audit_logger,
            "notifier": notifier,
            "renderer": renderer,
            "contracts": contracts,
        }
        self._closed = False

    # ---------- Factory -----------------------------------------------
    @classmethod
    def create(
        cls,
        config: Optional[ConfigService] = None,
        *,
        transport: Optional[MailTransport] = None,
    ) -> "AppContext":
        """
        Build every service from configuration.

        Args:
            config: Configuration; defaults to the process-wide ConfigService
            transport: Mail transport override (e.g. an OutboxMailTransport in
                       tests); otherwise SMTP when Notifications.smtp_host is
                       set, else an in-memory outbox

        Raises:
            NotFoundError: Templates.directory is set but missing
            ValidationError: A template file or the signature key is invalid
        """
        config = config or get_config_service()

        registry = TemplateRegistry()
        if config.templates.directory:
            registry.load_from_directory(Path(config.templates.directory))
        engine = TemplateEngine(registry)

        cipher = SignatureCipher(config.security.signature_key) if config.security.signature_key else None
        storage = SQLiteStorageAdapter(config.database.contracts, cipher=cipher)

        audit_logger = AuditLogger(config.database.audit)
        notifier = cls._build_notifier(config, transport)
        renderer = DocumentRenderer(RendererConfig.from_config(config))

        contracts = ContractService(engine=engine, storage=storage, notifier=notifier, renderer=renderer)
        contracts.subscribe(AuditService(audit_logger))

        return cls(
            config=config,
            registry=registry,
            engine=engine,
            storage=storage,
            audit_logger=audit_logger,
            notifier=notifier,
            renderer=renderer,
            contracts=contracts,
        )

    @staticmethod
    def _build_notifier(config: ConfigService, transport: Optional[MailTransport]) -> Notifier:
        settings = config.notifications
        if not settings.enabled:
            return NullNotifier()
        if transport is None:
            if settings.smtp_host:
                transport = SmtpMailTransport(
                    settings.smtp_host,
                    settings.smtp_port,
                    user=settings.smtp_user or None,
                    password=settings.smtp_password or None,
                    starttls=settings.smtp_starttls,
                )
            else:
                logger.warning("Notifications.smtp_host not set; emails are kept in an in-memory outbox")
                transport = OutboxMailTransport()
        email = EmailNotifier(transport, sender=settings.sender, base_url=settings.base_url)
        return NotificationDispatcher(
            email,
            max_attempts=settings.max_attempts,
            backoff_seconds=settings.backoff_seconds,
        )

    # ---------- Lookup / lifecycle ------------------------------------
    def register_service(self, name: str, instance: object) -> None:
        self.services[name] = instance

    def get_service(self, name: str) -> object:
        return self.services[name]

    def close(self) -> None:
        """Drain and stop the notifier, then close database connections."""
        if self._closed:
            return
        self._closed = True
        self.notifier.close()
        self.storage.close()
        self.audit_logger.close()

    def __enter__(self) -> "AppContext":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

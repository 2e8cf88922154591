"""
E-mail notifier.

Subject and body come from small message templates that use the same
``{{KEY}}`` placeholder substitution and formatting rules as contract
templates. Available keys:

    RECIPIENT_NAME, CLIENT_NAME, CONTRACTOR_NAME, CONTRACT_ID, PROJECT_NAME,
    TOTAL_AMOUNT (currency), START_DATE, END_DATE, STATUS, CONTRACT_URL,
    SIGNER_NAME, SIGNER_TYPE, SIGNED_AT, COMMENTS_BLOCK
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from contracts.adapters.mail_transport import MailMessage, MailTransport
from contracts.adapters.notifier import Notifier
from contracts.enum.contract_status import SignerRole
from contracts.exceptions.errors import ExternalServiceError
from contracts.logic.formatting import format_currency, format_long_date
from contracts.logic.template_engine import render_message
from contracts.models.contract_models import Contract, Party

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MessageTemplate:
    subject: str
    text: str


CONTRACT_CREATED = "contract-created"
SIGNATURE_REQUEST = "signature-request"
CONTRACT_SIGNED = "contract-signed"
STATUS_UPDATE = "status-update"

DEFAULT_TEMPLATES: Dict[str, MessageTemplate] = {
    CONTRACT_CREATED: MessageTemplate(
        subject="New Contract for Review - {{PROJECT_NAME}}",
        text=(
            "Dear {{RECIPIENT_NAME}},\n\n"
            "A new contract has been prepared for you.\n\n"
            "Contract ID: {{CONTRACT_ID}}\n"
            "Project: {{PROJECT_NAME}}\n"
            "Total Amount: {{TOTAL_AMOUNT}}\n"
            "Start Date: {{START_DATE}}\n"
            "End Date: {{END_DATE}}\n\n"
            "Review the contract: {{CONTRACT_URL}}\n"
        ),
    ),
    SIGNATURE_REQUEST: MessageTemplate(
        subject="Signature Required - {{PROJECT_NAME}}",
        text=(
            "Dear {{RECIPIENT_NAME}},\n\n"
            "Your signature is required on the following contract.\n\n"
            "Contract ID: {{CONTRACT_ID}}\n"
            "Project: {{PROJECT_NAME}}\n\n"
            "Sign the contract: {{CONTRACT_URL}}\n"
        ),
    ),
    CONTRACT_SIGNED: MessageTemplate(
        subject="Contract Signed - {{PROJECT_NAME}}",
        text=(
            "Dear {{RECIPIENT_NAME}},\n\n"
            "The contract has been signed by {{SIGNER_NAME}}.\n\n"
            "Contract ID: {{CONTRACT_ID}}\n"
            "Project: {{PROJECT_NAME}}\n"
            "Signed by: {{SIGNER_TYPE}}\n"
            "Signed at: {{SIGNED_AT}}\n\n"
            "View the contract: {{CONTRACT_URL}}\n"
        ),
    ),
    STATUS_UPDATE: MessageTemplate(
        subject="Contract Status Update - {{PROJECT_NAME}}",
        text=(
            "Dear {{RECIPIENT_NAME}},\n\n"
            "The status of your contract has changed.\n\n"
            "Contract ID: {{CONTRACT_ID}}\n"
            "Project: {{PROJECT_NAME}}\n"
            "New Status: {{STATUS}}\n"
            "{{COMMENTS_BLOCK}}\n"
            "View the contract: {{CONTRACT_URL}}\n"
        ),
    ),
}


class EmailNotifier(Notifier):
    def __init__(
        self,
        transport: MailTransport,
        *,
        sender: str,
        base_url: str,
        templates: Optional[Dict[str, MessageTemplate]] = None,
    ) -> None:
        self._transport = transport
        self._sender = sender
        self._base_url = base_url.rstrip("/")
        self._templates: Dict[str, MessageTemplate] = dict(DEFAULT_TEMPLATES)
        if templates:
            self._templates.update(templates)

    def set_template(self, name: str, template: MessageTemplate) -> None:
        self._templates[name] = template

    def contract_url(self, contract_id: str) -> str:
        return f"{self._base_url}/contracts/{contract_id}"

    # ---- Notifier ------------------------------------------------------- #
    def send_contract_notification(self, contract: Contract, recipient: Party) -> None:
        self._send(CONTRACT_CREATED, contract, recipient)

    def send_signature_request(self, contract: Contract, recipient: Party) -> None:
        self._send(SIGNATURE_REQUEST, contract, recipient)

    def send_signature_notification(self, contract: Contract, recipient: Party, signer_role: SignerRole) -> None:
        track = contract.track(signer_role)
        self._send(
            CONTRACT_SIGNED,
            contract,
            recipient,
            SIGNER_NAME=contract.party(signer_role).name,
            SIGNER_TYPE=signer_role.value,
            SIGNED_AT=format_long_date(track.signed_at, default="-"),
        )

    def send_status_update_notification(self, contract: Contract) -> None:
        notes = (contract.admin_notes or "").strip()
        self._send(
            STATUS_UPDATE,
            contract,
            contract.client,
            COMMENTS_BLOCK=f"Comments: {notes}\n" if notes else "",
        )

    # ---- helpers -------------------------------------------------------- #
    def message_values(self, contract: Contract, recipient: Party) -> Dict[str, Any]:
        return {
            "RECIPIENT_NAME": recipient.name or recipient.email,
            "CLIENT_NAME": contract.client.name,
            "CONTRACTOR_NAME": contract.contractor.name,
            "CONTRACT_ID": contract.id,
            "PROJECT_NAME": contract.project_name or "Project",
            "TOTAL_AMOUNT": format_currency(contract.total_amount),
            "START_DATE": format_long_date(contract.start_date),
            "END_DATE": format_long_date(contract.end_date),
            "STATUS": contract.status.value,
            "CONTRACT_URL": self.contract_url(contract.id),
        }

    def build_message(self, name: str, contract: Contract, recipient: Party, **extra: Any) -> MailMessage:
        template = self._templates[name]
        values = self.message_values(contract, recipient)
        values.update(extra)
        return MailMessage(
            to=(recipient.email,),
            subject=render_message(template.subject, values),
            text=render_message(template.text, values),
            sender=self._sender,
        )

    def _send(self, name: str, contract: Contract, recipient: Party, **extra: Any) -> None:
        if not recipient.email:
            raise ExternalServiceError(f"No e-mail address for {recipient.name or 'recipient'} on {contract.id}")
        message = self.build_message(name, contract, recipient, **extra)
        self._transport.send(message)
        logger.info("Sent %s for %s to %s", name, contract.id, recipient.email)

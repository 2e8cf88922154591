"""Notifier abstraction.

Consumed by ContractService on a best-effort basis: any exception raised by
an implementation is caught, logged and never rolls back a state change.
"""

from __future__ import annotations
from abc import ABC, abstractmethod

from contracts.enum.contract_status import SignerRole
from contracts.models.contract_models import Contract, Party


class Notifier(ABC):
    @abstractmethod
    def send_contract_notification(self, contract: Contract, recipient: Party) -> None:
        """Tell *recipient* that a new contract is ready for review."""
        raise NotImplementedError

    @abstractmethod
    def send_signature_request(self, contract: Contract, recipient: Party) -> None:
        """Ask *recipient* to sign."""
        raise NotImplementedError

    @abstractmethod
    def send_signature_notification(self, contract: Contract, recipient: Party, signer_role: SignerRole) -> None:
        """Tell *recipient* that the party in *signer_role* has signed."""
        raise NotImplementedError

    @abstractmethod
    def send_status_update_notification(self, contract: Contract) -> None:
        """Tell the client about an administrative status change."""
        raise NotImplementedError

    def close(self) -> None:
        """Flush and release resources (no-op by default)."""


class NullNotifier(Notifier):
    """Used when notifications are disabled in the configuration."""

    def send_contract_notification(self, contract: Contract, recipient: Party) -> None:
        return None

    def send_signature_request(self, contract: Contract, recipient: Party) -> None:
        return None

    def send_signature_notification(self, contract: Contract, recipient: Party, signer_role: SignerRole) -> None:
        return None

    def send_status_update_notification(self, contract: Contract) -> None:
        return None

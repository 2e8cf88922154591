"""Data Transfer Objects for the contracts module."""

from contracts.dto.contract_event import ContractEvent, ContractEventType

__all__ = ["ContractEvent", "ContractEventType"]

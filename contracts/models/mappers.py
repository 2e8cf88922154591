from __future__ import annotations

import json
from typing import Any, Callable, Dict, Optional

from contracts.enum.contract_status import ContractStatus, SignatureStatus
from contracts.models.contract_models import Contract, Party, SignatureTrack
from core.helpers.date_time_helper import parse_iso, to_iso

ImageCodec = Callable[[Optional[str]], Optional[str]]


def _identity(value: Optional[str]) -> Optional[str]:
    return value


def _track_columns(prefix: str, track: SignatureTrack, encode: ImageCodec) -> Dict[str, Any]:
    return {
        f"{prefix}_signature_status": track.status.value,
        f"{prefix}_signature": encode(track.image),
        f"{prefix}_signed_at": to_iso(track.signed_at),
        f"{prefix}_requested_at": to_iso(track.requested_at),
    }


def _track_from(prefix: str, row: Dict[str, Any], decode: ImageCodec) -> SignatureTrack:
    return SignatureTrack(
        status=SignatureStatus(row.get(f"{prefix}_signature_status") or "not_requested"),
        image=decode(row.get(f"{prefix}_signature")),
        signed_at=parse_iso(row.get(f"{prefix}_signed_at")),
        requested_at=parse_iso(row.get(f"{prefix}_requested_at")),
    )


def contract_to_row(contract: Contract, *, encode_image: ImageCodec = _identity) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "id": contract.id,
        "template_id": contract.template_id,
        "user_id": contract.user_id,
        "admin_id": contract.admin_id,
        "client_name": contract.client.name,
        "client_email": contract.client.email,
        "client_address": contract.client.address,
        "contractor_name": contract.contractor.name,
        "contractor_email": contract.contractor.email,
        "contractor_address": contract.contractor.address,
        "project_name": contract.project_name,
        "project_description": contract.project_description,
        "project_location": contract.project_location,
        "start_date": contract.start_date,
        "end_date": contract.end_date,
        # JSON keeps 1234.5 and "1234.50" apart
        "total_amount": json.dumps(contract.total_amount, default=str),
        "payment_terms": contract.payment_terms,
        "scope": contract.scope,
        "contract_content": contract.contract_content,
        "status": contract.status.value,
        "user_comments": contract.user_comments,
        "admin_notes": contract.admin_notes,
        "created_at": to_iso(contract.created_at),
        "updated_at": to_iso(contract.updated_at),
        "version": contract.version,
    }
    row.update(_track_columns("client", contract.client_signature, encode_image))
    row.update(_track_columns("contractor", contract.contractor_signature, encode_image))
    return row


def row_to_contract(row: Dict[str, Any], *, decode_image: ImageCodec = _identity) -> Contract:
    raw_amount = row.get("total_amount")
    return Contract(
        id=row["id"],
        template_id=row.get("template_id"),
        user_id=row.get("user_id"),
        admin_id=row.get("admin_id"),
        client=Party(row.get("client_name") or "", row.get("client_email") or "", row.get("client_address")),
        contractor=Party(
            row.get("contractor_name") or "", row.get("contractor_email") or "", row.get("contractor_address")
        ),
        project_name=row.get("project_name") or "",
        project_description=row.get("project_description"),
        project_location=row.get("project_location"),
        start_date=row.get("start_date"),
        end_date=row.get("end_date"),
        total_amount=json.loads(raw_amount) if raw_amount else 0,
        payment_terms=row.get("payment_terms"),
        scope=row.get("scope"),
        contract_content=row.get("contract_content") or "",
        status=ContractStatus(row.get("status") or "pending"),
        client_signature=_track_from("client", row, decode_image),
        contractor_signature=_track_from("contractor", row, decode_image),
        user_comments=row.get("user_comments"),
        admin_notes=row.get("admin_notes"),
        created_at=parse_iso(row.get("created_at")),
        updated_at=parse_iso(row.get("updated_at")),
        version=int(row.get("version") or 1),
    )

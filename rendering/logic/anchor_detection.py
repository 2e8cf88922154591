"""
Signature anchor detection.

Contract bodies are free text. The places where each party signs are found
heuristically by scanning laid-out lines for party labels:

  - client:     a line containing "Owner:" or "Client:"
  - contractor: a line containing "Contractor:", unless it is prose that
                starts with "The Contractor"

The first matching line wins per role; a line counts for at most one role,
client first.
"""

from __future__ import annotations

from typing import Iterable, Optional

from contracts.enum.contract_status import SignerRole
from rendering.models.layout import Anchor, PositionedLine, SignatureAnchors

CLIENT_LABELS = ("Owner:", "Client:")
CONTRACTOR_LABELS = ("Contractor:",)
CONTRACTOR_PROSE = ("The Contractor",)


def classify_signature_line(text: str) -> Optional[SignerRole]:
    if any(label in text for label in CLIENT_LABELS):
        return SignerRole.CLIENT
    if any(label in text for label in CONTRACTOR_LABELS) and not any(p in text for p in CONTRACTOR_PROSE):
        return SignerRole.CONTRACTOR
    return None


def detect_anchors(lines: Iterable[PositionedLine], offset: float = 0.0) -> SignatureAnchors:
    """
    Scan laid-out body lines for the first label of each party.

    Args:
        lines: Body lines in reading order
        offset: Added to the label line's y to obtain the anchor y

    Returns:
        SignatureAnchors; a role without a label is None
    """
    found = {}
    for line in lines:
        if line.is_continuation:
            continue
        role = classify_signature_line(line.logical_text)
        if role is None or role in found:
            continue
        found[role] = Anchor(role=role, page_index=line.page_index, y=line.y + offset, text=line.logical_text)
        if len(found) == 2:
            break
    return SignatureAnchors(client=found.get(SignerRole.CLIENT), contractor=found.get(SignerRole.CONTRACTOR))

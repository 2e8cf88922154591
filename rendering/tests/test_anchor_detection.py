from __future__ import annotations

from contracts.enum.contract_status import SignerRole
from rendering.logic.anchor_detection import classify_signature_line, detect_anchors
from rendering.models.layout import PositionedLine


def test_classify_signature_line() -> None:
    assert classify_signature_line("Client: ______") == SignerRole.CLIENT
    assert classify_signature_line("The Owner: Jane Doe") == SignerRole.CLIENT
    assert classify_signature_line("Contractor: ______") == SignerRole.CONTRACTOR
    assert classify_signature_line("The Contractor: shall provide materials") is None
    assert classify_signature_line("The Contractor shall provide materials") is None
    assert classify_signature_line("Client and Contractor agree") is None
    # a line naming both labels counts for the client
    assert classify_signature_line("Client: A   Contractor: B") == SignerRole.CLIENT


def test_first_match_wins_and_offset_applies() -> None:
    lines = [
        PositionedLine(0, 100.0, "Intro"),
        PositionedLine(0, 116.0, "Client: ____"),
        PositionedLine(0, 132.0, "Contractor: ____"),
        PositionedLine(1, 90.0, "Client: second"),
    ]
    anchors = detect_anchors(lines, offset=5.0)
    assert anchors.client_y == 121.0
    assert anchors.client.page_index == 0
    assert anchors.contractor_y == 137.0
    assert anchors.get(SignerRole.CONTRACTOR).text == "Contractor: ____"


def test_wrapped_lines_anchor_at_first_visual_line() -> None:
    source = "This paragraph is long and ends with the label Client: ____"
    lines = [
        PositionedLine(0, 100.0, "This paragraph is long and ends", line_no=3, source_text=source),
        PositionedLine(0, 116.0, "with the label Client: ____", line_no=3, source_text=source, is_continuation=True),
    ]
    anchors = detect_anchors(lines)
    assert anchors.client_y == 100.0
    assert anchors.contractor is None


def test_no_labels() -> None:
    anchors = detect_anchors([PositionedLine(0, 10.0, "Nothing to sign here")])
    assert anchors.client is None and anchors.contractor is None
    assert anchors.client_y is None

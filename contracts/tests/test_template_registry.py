from __future__ import annotations

import json
from pathlib import Path

import pytest

from contracts.exceptions.errors import NotFoundError, ValidationError
from contracts.logic.template_registry import TemplateRegistry
from contracts.models.contract_models import ContractTemplate


def test_register_get_list_and_remove() -> None:
    registry = TemplateRegistry([
        ContractTemplate("a", "A", "x", category="construction"),
        ContractTemplate("b", "B", "y"),
    ])
    assert len(registry) == 2
    assert "a" in registry
    assert [t.id for t in registry.list_templates("construction")] == ["a"]
    assert registry.get_template("missing") is None
    with pytest.raises(NotFoundError):
        registry.require_template("missing")
    assert registry.remove_template("a") is True
    registry.clear_templates()
    assert len(registry) == 0


def test_load_from_directory(tmp_path: Path) -> None:
    (tmp_path / "one.json").write_text(json.dumps({
        "id": "residential",
        "name": "Residential",
        "content": "Client: {{CLIENT_NAME}}",
        "requiredFields": ["clientName"],
        "isDefault": True,
    }), encoding="utf-8")
    (tmp_path / "many.json").write_text(json.dumps([
        {"id": "x", "content": "X"},
        {"id": "y", "content": "Y", "category": "service"},
    ]), encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    registry = TemplateRegistry()
    assert registry.load_from_directory(tmp_path) == 3
    residential = registry.require_template("residential")
    assert residential.required_fields == ("clientName",)
    assert residential.is_default is True
    assert registry.require_template("x").name == "x"


def test_load_from_directory_errors(tmp_path: Path) -> None:
    registry = TemplateRegistry()
    with pytest.raises(NotFoundError):
        registry.load_from_directory(tmp_path / "nope")

    (tmp_path / "bad.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(ValidationError):
        registry.load_from_directory(tmp_path)

    (tmp_path / "bad.json").write_text(json.dumps({"name": "no id"}), encoding="utf-8")
    with pytest.raises(ValidationError):
        registry.load_from_directory(tmp_path)

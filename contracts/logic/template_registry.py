"""
Registry of contract templates.

Constructed once by the composition root and injected into the engine and
the contract service. Registering a template under an existing id replaces
it; contracts already created keep their resolved snapshot.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from contracts.exceptions.errors import NotFoundError, ValidationError
from contracts.models.contract_models import ContractTemplate

logger = logging.getLogger(__name__)


class TemplateRegistry:
    def __init__(self, templates: Iterable[ContractTemplate] = ()) -> None:
        self._lock = threading.RLock()
        self._templates: Dict[str, ContractTemplate] = {}
        self.register_templates(templates)

    # ------------------------------------------------------------------ #
    def register_template(self, template: ContractTemplate) -> None:
        with self._lock:
            self._templates[template.id] = template

    def register_templates(self, templates: Iterable[ContractTemplate]) -> None:
        with self._lock:
            for template in templates:
                self._templates[template.id] = template

    def get_template(self, template_id: str) -> Optional[ContractTemplate]:
        with self._lock:
            return self._templates.get(template_id)

    def require_template(self, template_id: str) -> ContractTemplate:
        template = self.get_template(template_id)
        if template is None:
            raise NotFoundError(f"Template not found: {template_id}")
        return template

    def list_templates(self, category: Optional[str] = None) -> List[ContractTemplate]:
        with self._lock:
            items = list(self._templates.values())
        if category is None:
            return items
        return [t for t in items if t.category == category]

    def remove_template(self, template_id: str) -> bool:
        with self._lock:
            return self._templates.pop(template_id, None) is not None

    def clear_templates(self) -> None:
        with self._lock:
            self._templates.clear()

    def __contains__(self, template_id: object) -> bool:
        with self._lock:
            return template_id in self._templates

    def __len__(self) -> int:
        with self._lock:
            return len(self._templates)

    # ------------------------------------------------------------------ #
    def load_from_directory(self, directory: Path | str) -> int:
        """
        Register every ``*.json`` template file in *directory*.

        Each file holds one template object or a list of them. Returns the
        number of templates registered.

        Raises:
            NotFoundError: directory does not exist
            ValidationError: a file is not valid JSON or misses id/content
        """
        root = Path(directory)
        if not root.is_dir():
            raise NotFoundError(f"Template directory not found: {root}")

        loaded: List[ContractTemplate] = []
        for path in sorted(root.glob("*.json")):
            try:
                payload = json.loads(path.read_text(encoding="utf-8"))
                items = payload if isinstance(payload, list) else [payload]
                loaded.extend(ContractTemplate.from_dict(item) for item in items)
            except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as exc:
                raise ValidationError(f"Invalid template file {path.name}: {exc}") from exc

        self.register_templates(loaded)
        logger.info("Loaded %d template(s) from %s", len(loaded), root)
        return len(loaded)

"""
Template resolution for contracts.

Placeholders come in two syntaxes that coexist in real templates and are
resolved in the same pass:

    {{CLIENT_NAME}}   curly syntax (canonical formatting)
    [CLIENT_NAME]     bracket syntax (legacy)

Both map onto the same logical field. The one deliberate difference is the
amount family: ``{{TOTAL_AMOUNT}}`` renders as currency ("$1,234.50") while
``[TOTAL_AMOUNT]`` keeps the bare number ("1234.5"), which existing bracket
templates rely on (they print their own "$").

Substitution is a single regex pass over the escaped literal tokens, so a
value inserted for one placeholder is never scanned again.
"""

from __future__ import annotations

import hashlib
import json
import re
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from contracts.exceptions.errors import ValidationError
from contracts.logic.formatting import (
    format_currency,
    format_long_date,
    format_plain_number,
    title_from_key,
)
from contracts.logic.template_registry import TemplateRegistry
from contracts.models.contract_models import ContractTemplate


KEY_PATTERN = r"[A-Z][A-Z0-9_]*"
_TOKEN_RE = re.compile(r"\{\{(" + KEY_PATTERN + r")\}\}|\[(" + KEY_PATTERN + r")\]")
# any bracketed or double-braced text, for auditing what resolution left behind
_LOOSE_TOKEN_RE = re.compile(r"\{\{[^}]+\}\}|\[[^\]]+\]")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


# --------------------------------------------------------------------------- #
#  Built-in field map
# --------------------------------------------------------------------------- #
# KEY -> (data fields tried in order, readable default)
_TEXT_FIELDS: Dict[str, Tuple[Tuple[str, ...], str]] = {
    "CONTRACTOR_NAME": (("contractor_name",), "Contractor Name"),
    "COMPANY_NAME": (("company_name", "contractor_name"), "Company Name"),
    "CONTRACTOR_EMAIL": (("contractor_email",), "contractor@example.com"),
    "COMPANY_EMAIL": (("company_email", "contractor_email"), "contractor@example.com"),
    "CLIENT_NAME": (("client_name",), "Client Name"),
    "CUSTOMER_NAME": (("customer_name", "client_name"), "Client Name"),
    "OWNER_NAME": (("owner_name", "client_name"), "Client Name"),
    "CLIENT_EMAIL": (("client_email",), "client@example.com"),
    "CLIENT_ADDRESS": (("client_address",), "Client Address"),
    "OWNER_ADDRESS": (("owner_address", "client_address"), "Client Address"),
    "PROJECT_NAME": (("project_name",), "Project Name"),
    "PROJECT_DESCRIPTION": (("project_description",), "Project Description"),
    "PROJECT_DETAILS": (("project_details", "project_description"), "Project Details"),
    "PROJECT_LOCATION": (("project_location", "project_name"), "Project Location"),
    "PAYMENT_TERMS": (("payment_terms",), "Net 30 days"),
    "SCOPE_OF_WORK": (("scope_of_work", "scope"), "Scope of work to be defined"),
    "SCOPE": (("scope",), "Scope of work to be defined"),
    "WORK_DESCRIPTION": (("work_description", "scope"), "Work description to be defined"),
}
_DATE_FIELDS: Dict[str, str] = {"START_DATE": "start_date", "END_DATE": "end_date"}
_TODAY_KEYS = ("DATE", "CURRENT_DATE", "TODAY", "CONTRACT_DATE", "EFFECTIVE_DATE")
_CONTRACT_ID_KEYS = ("CONTRACT_ID", "CONTRACT_NUMBER")
_AMOUNT_KEYS = ("TOTAL_AMOUNT", "AMOUNT", "CONTRACT_AMOUNT")

BUILTIN_KEYS = frozenset(
    list(_TEXT_FIELDS) + list(_DATE_FIELDS) + list(_TODAY_KEYS)
    + list(_CONTRACT_ID_KEYS) + list(_AMOUNT_KEYS)
)


# --------------------------------------------------------------------------- #
#  Token helpers
# --------------------------------------------------------------------------- #
def curly(key: str) -> str:
    return "{{" + key + "}}"


def bracket(key: str) -> str:
    return "[" + key + "]"


def scan_placeholders(text: str) -> List[str]:
    """Tokens of either syntax in *text*, first appearance first, no duplicates.

    Matches any content between the delimiters (``{{clientName}}``,
    ``[Exhibit A]``), not only resolvable KEYs.
    """
    seen: Dict[str, None] = {}
    for match in _LOOSE_TOKEN_RE.finditer(text or ""):
        seen.setdefault(match.group(0), None)
    return list(seen)


def placeholder_keys(text: str) -> List[str]:
    """KEYs referenced in *text* under either syntax (deduplicated)."""
    seen: Dict[str, None] = {}
    for match in _TOKEN_RE.finditer(text or ""):
        seen.setdefault(match.group(1) or match.group(2), None)
    return list(seen)


def substitute(text: str, replacements: Mapping[str, str]) -> str:
    """Replace every literal token of *replacements* in one pass.

    Longer tokens are tried first so ``{{AMOUNT}}`` never shadows
    ``{{CONTRACT_AMOUNT}}``.
    """
    if not replacements or not text:
        return text
    tokens = sorted(replacements, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(token) for token in tokens))
    return pattern.sub(lambda m: replacements[m.group(0)], text)


def render_message(text: str, values: Mapping[str, Any]) -> str:
    """Fill ``{{KEY}}``/``[KEY]`` tokens of a message template from *values*."""
    replacements: Dict[str, str] = {}
    for key, value in values.items():
        rendered = "" if value is None else str(value)
        replacements[curly(key)] = rendered
        replacements[bracket(key)] = rendered
    return substitute(text, replacements)


def normalize_field_name(name: str) -> str:
    """``clientName`` / ``client-name`` / ``CLIENT_NAME`` -> ``client_name``."""
    text = re.sub(r"[\s\-]+", "_", str(name).strip())
    return _CAMEL_BOUNDARY.sub("_", text).lower()


def normalize_fields(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {normalize_field_name(k): v for k, v in (data or {}).items()}


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value.strip() if isinstance(value, str) else str(value)


def _first(fields: Mapping[str, Any], names: Sequence[str]) -> str:
    for name in names:
        value = _text(fields.get(name))
        if value:
            return value
    return ""


# --------------------------------------------------------------------------- #
#  Engine
# --------------------------------------------------------------------------- #
class TemplateEngine:
    """Resolves registered templates against field data."""

    def __init__(
        self,
        registry: Optional[TemplateRegistry] = None,
        *,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._registry = registry if registry is not None else TemplateRegistry()
        self._clock = clock or datetime.now

    @property
    def registry(self) -> TemplateRegistry:
        return self._registry

    # ---- registry maintenance ------------------------------------------- #
    def register_template(self, template: ContractTemplate) -> None:
        self._registry.register_template(template)

    def register_templates(self, templates: Iterable[ContractTemplate]) -> None:
        self._registry.register_templates(templates)

    def get_template(self, template_id: str) -> Optional[ContractTemplate]:
        return self._registry.get_template(template_id)

    def list_templates(self, category: Optional[str] = None) -> List[ContractTemplate]:
        return self._registry.list_templates(category)

    def remove_template(self, template_id: str) -> bool:
        return self._registry.remove_template(template_id)

    def clear_templates(self) -> None:
        self._registry.clear_templates()

    # ---- resolution ----------------------------------------------------- #
    def process_template(self, template_id: str, data: Optional[Mapping[str, Any]] = None) -> str:
        """
        Resolve template *template_id* with *data*.

        Args:
            template_id: id of a registered template
            data: field data; snake_case and camelCase keys are both accepted

        Returns:
            Resolved text without any placeholder of either syntax

        Raises:
            NotFoundError: template id unknown
        """
        template = self._registry.require_template(template_id)
        return self.resolve(template, data or {})

    def resolve(self, template: ContractTemplate, data: Mapping[str, Any]) -> str:
        return substitute(template.content, self.build_replacements(template, data))

    def build_replacements(self, template: ContractTemplate, data: Mapping[str, Any]) -> Dict[str, str]:
        """Token -> value for built-ins, custom fields and declared/present placeholders."""
        raw = dict(data or {})
        fields = normalize_fields(raw)
        contract_id = _text(fields.get("contract_id")) or self._derived_contract_id(template.id, raw)

        replacements: Dict[str, str] = {}
        for key, (curly_value, bracket_value) in self._builtin_values(fields, contract_id).items():
            replacements[curly(key)] = curly_value
            replacements[bracket(key)] = bracket_value

        # custom per-deployment fields; built-ins are never overridden
        for name, value in raw.items():
            for key in self._custom_keys(name):
                if key in BUILTIN_KEYS or curly(key) in replacements:
                    continue
                rendered = _text(value) or title_from_key(key)
                replacements[curly(key)] = rendered
                replacements[bracket(key)] = rendered

        # declared or present but unsupplied: readable default
        for key in list(template.placeholders) + placeholder_keys(template.content):
            key = str(key).strip().upper()
            if key and curly(key) not in replacements:
                replacements[curly(key)] = title_from_key(key)
                replacements[bracket(key)] = title_from_key(key)
        return replacements

    def _builtin_values(self, fields: Mapping[str, Any], contract_id: str) -> Dict[str, Tuple[str, str]]:
        today = format_long_date(self._clock())
        values: Dict[str, Tuple[str, str]] = {}
        for key in _TODAY_KEYS:
            values[key] = (today, today)
        for key in _CONTRACT_ID_KEYS:
            values[key] = (contract_id, contract_id)
        for key, (names, default) in _TEXT_FIELDS.items():
            text = _first(fields, names) or default
            values[key] = (text, text)
        for key, name in _DATE_FIELDS.items():
            text = format_long_date(fields.get(name))
            values[key] = (text, text)
        amount = fields.get("total_amount")
        currency, plain = format_currency(amount), format_plain_number(amount)
        for key in _AMOUNT_KEYS:
            values[key] = (currency, plain)
        return values

    @staticmethod
    def _custom_keys(name: str) -> List[str]:
        keys = [str(name).upper()]
        snake = normalize_field_name(name).upper()
        if snake not in keys:
            keys.append(snake)
        return keys

    @staticmethod
    def _derived_contract_id(template_id: str, data: Mapping[str, Any]) -> str:
        # stable for identical input so resolution stays idempotent
        payload = json.dumps(data, sort_keys=True, default=str)
        digest = hashlib.sha256(f"{template_id}\n{payload}".encode("utf-8")).hexdigest()
        return f"CONTRACT_{digest[:16].upper()}"

    # ---- validation / auditing ----------------------------------------- #
    def validate_template(self, template_id: str, required_keys: Iterable[str]) -> bool:
        """True if every required KEY appears in the template under either syntax."""
        template = self._registry.get_template(template_id)
        if template is None:
            return False
        return not self._missing_keys(template, required_keys)

    def ensure_template_valid(self, template_id: str, required_keys: Optional[Iterable[str]] = None) -> None:
        """Raise ValidationError naming the missing keys (declared placeholders by default)."""
        template = self._registry.require_template(template_id)
        keys = template.placeholders if required_keys is None else required_keys
        missing = self._missing_keys(template, keys)
        if missing:
            raise ValidationError(
                f"Template {template_id} is missing placeholder(s): {', '.join(missing)}"
            )

    @staticmethod
    def _missing_keys(template: ContractTemplate, keys: Iterable[str]) -> List[str]:
        content = template.content
        return [k for k in keys if curly(k) not in content and bracket(k) not in content]

    def get_template_placeholders(self, template_id: str) -> List[str]:
        template = self._registry.get_template(template_id)
        if template is None:
            return []
        return scan_placeholders(template.content)

    @staticmethod
    def find_unresolved_placeholders(text: str) -> List[str]:
        return scan_placeholders(text)

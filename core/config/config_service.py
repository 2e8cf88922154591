"""Typed, layered configuration loader with precedence handling.

Layers (later wins):
    0. embedded defaults (``_DEFAULTS``)
    1. ``core/config/defaults.ini``
    2. environment variables ``CONTRACTS_<SECTION>__<KEY>``
    3. machine config ``core/config/config.ini``
    4. user config ``$XDG_CONFIG_HOME/contracts/config.ini``
"""
from __future__ import annotations

import os
import configparser
from dataclasses import dataclass, fields
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, get_type_hints

# --------------------------------------------------------------------------- #
#  Paths & default definitions
# --------------------------------------------------------------------------- #

def _find_project_root() -> Path:
    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / "contracts").is_dir() and (parent / "core").is_dir():
            return parent
    return here.parent

PROJECT_ROOT = _find_project_root()
CONFIG_DIR = PROJECT_ROOT / "core" / "config"
DEFAULTS_INI = CONFIG_DIR / "defaults.ini"
MACHINE_INI = CONFIG_DIR / "config.ini"
ENV_PREFIX = "CONTRACTS_"


_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "Database": {
        "contracts": (PROJECT_ROOT / "databases" / "contracts.db").as_posix(),
        "audit": (PROJECT_ROOT / "databases" / "audit.db").as_posix(),
    },
    "Renderer": {
        "page_format": "letter",
        "margin_mm": "20",
        "watermark": "",
        "embed_signatures": "true",
        "show_header": "true",
        "show_page_numbers": "true",
        "font_name": "Times-Roman",
        "font_size": "12",
    },
    "Notifications": {
        "enabled": "true",
        "base_url": "http://localhost:3000",
        "sender": "contracts@localhost",
        "smtp_host": "",
        "smtp_port": "25",
        "smtp_user": "",
        "smtp_password": "",
        "smtp_starttls": "false",
        "max_attempts": "3",
        "backoff_seconds": "1.0",
    },
    "Templates": {
        "directory": "",
    },
    "Security": {
        "signature_key": "",
    },
}


# --------------------------------------------------------------------------- #
#  Datamodels
# --------------------------------------------------------------------------- #

@dataclass
class DatabaseConfig:
    contracts: Path
    audit: Path


@dataclass
class RendererSettings:
    page_format: str = "letter"
    margin_mm: float = 20.0
    watermark: str = ""
    embed_signatures: bool = True
    show_header: bool = True
    show_page_numbers: bool = True
    font_name: str = "Times-Roman"
    font_size: float = 12.0


@dataclass
class NotificationsConfig:
    enabled: bool = True
    base_url: str = "http://localhost:3000"
    sender: str = "contracts@localhost"
    smtp_host: str = ""
    smtp_port: int = 25
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_starttls: bool = False
    max_attempts: int = 3
    backoff_seconds: float = 1.0


@dataclass
class TemplatesConfig:
    directory: str = ""


@dataclass
class SecurityConfig:
    # Fernet key (urlsafe base64). Empty disables at-rest encryption of signatures.
    signature_key: str = ""


# --------------------------------------------------------------------------- #
#  Helpers
# --------------------------------------------------------------------------- #

def _cp_to_dict(cp: configparser.ConfigParser) -> Dict[str, Dict[str, Any]]:
    data: Dict[str, Dict[str, Any]] = {}
    for section in cp.sections():
        data[section] = {k: v for k, v in cp.items(section)}
    return data


def _read_ini(path: Path) -> Dict[str, Dict[str, Any]]:
    cp = configparser.ConfigParser(interpolation=None)
    cp.read(path, encoding="utf-8")
    return _cp_to_dict(cp)


def _apply(target: Dict[str, Dict[str, Any]], source: Dict[str, Dict[str, Any]],
           layer: str, origin: str,
           sources: Dict[Tuple[str, str], Dict[str, str]]) -> None:
    for section, items in source.items():
        sec = target.setdefault(section, {})
        for key, value in items.items():
            sec[key] = value
            sources[(section, key)] = {"layer": layer, "source": origin}


def _cast(value: Any, typ: type) -> Any:
    if typ is Path:
        return Path(str(value)).expanduser()
    if typ is bool:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
    if typ is int:
        return int(value)
    if typ is float:
        return float(value)
    return typ(value)


def _build_dataclass(cls: type, data: Dict[str, Any]) -> Any:
    hints = get_type_hints(cls)
    kwargs = {}
    for field in fields(cls):
        val = data.get(field.name, field.default)
        kwargs[field.name] = _cast(val, hints[field.name])
    return cls(**kwargs)


def _env_overlays(environ: Mapping[str, str]) -> Dict[str, Dict[str, Any]]:
    result: Dict[str, Dict[str, Any]] = {}
    for env_key, value in environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        remainder = env_key[len(ENV_PREFIX):]
        parts = remainder.split("__", 1)
        if len(parts) != 2:
            continue
        section, key = parts
        result.setdefault(section.title(), {})[key.lower()] = value
    return result


def _user_config_path() -> Path:
    if os.name == "nt":
        appdata = os.environ.get("APPDATA") or (Path.home() / "AppData" / "Roaming")
        return Path(appdata) / "Contracts" / "config.ini"
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "contracts" / "config.ini"


# --------------------------------------------------------------------------- #
#  ConfigService
# --------------------------------------------------------------------------- #


class ConfigService:
    """Facade merging layered configuration with type safety.

    All paths and the environment can be overridden, which keeps tests away
    from the developer's real configuration files.
    """

    def __init__(
        self,
        *,
        defaults_ini: Optional[Path] = DEFAULTS_INI,
        machine_ini: Optional[Path] = MACHINE_INI,
        user_ini: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._lock = RLock()
        self._defaults_ini = Path(defaults_ini) if defaults_ini else None
        self._machine_ini = Path(machine_ini) if machine_ini else None
        self._user_ini = Path(user_ini) if user_ini else _user_config_path()
        self._environ = environ
        self.reload()

    # ------------------------------------------------------------------ #
    def reload(self) -> None:
        with self._lock:
            merged: Dict[str, Dict[str, Any]] = {}
            sources: Dict[Tuple[str, str], Dict[str, str]] = {}

            # Layer 0: embedded defaults
            _apply(merged, _DEFAULTS, "code", "embedded", sources)

            # Layer 1: defaults.ini
            if self._defaults_ini and self._defaults_ini.exists():
                _apply(merged, _read_ini(self._defaults_ini), "defaults.ini",
                       str(self._defaults_ini), sources)

            # Layer 2: environment variables
            environ = os.environ if self._environ is None else self._environ
            _apply(merged, _env_overlays(environ), "env", "os.environ", sources)

            # Layer 3: machine config
            if self._machine_ini and self._machine_ini.exists():
                _apply(merged, _read_ini(self._machine_ini), "machine",
                       str(self._machine_ini), sources)

            # Layer 4: user overrides
            if self._user_ini.exists():
                _apply(merged, _read_ini(self._user_ini), "user", str(self._user_ini), sources)

            self._merged = merged
            self._sources = sources

            self.database = _build_dataclass(DatabaseConfig, merged.get("Database", {}))
            self.renderer = _build_dataclass(RendererSettings, merged.get("Renderer", {}))
            self.notifications = _build_dataclass(NotificationsConfig, merged.get("Notifications", {}))
            self.templates = _build_dataclass(TemplatesConfig, merged.get("Templates", {}))
            self.security = _build_dataclass(SecurityConfig, merged.get("Security", {}))

    # ------------------------------------------------------------------ #
    def get(self, section: str, key: str, *, cast: Callable[[Any], Any] | type = str) -> Any:
        val = self._merged.get(section, {}).get(key)
        if val is None:
            return None
        if isinstance(cast, type):
            return _cast(val, cast)
        return cast(val)

    def meta_source(self, section: str, key: str) -> Dict[str, str] | None:
        return self._sources.get((section, key))


# --------------------------------------------------------------------------- #
#  Lazy global instance
# --------------------------------------------------------------------------- #
_INSTANCE: Optional[ConfigService] = None
_INSTANCE_LOCK = RLock()


def get_config_service() -> ConfigService:
    """Return the process-wide ConfigService, creating it on first use."""
    global _INSTANCE
    with _INSTANCE_LOCK:
        if _INSTANCE is None:
            _INSTANCE = ConfigService()
        return _INSTANCE

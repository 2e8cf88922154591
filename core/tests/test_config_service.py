"""
core/tests/test_config_service.py

Layer precedence and typing of ConfigService. Every test passes explicit
paths and an explicit environment so the developer's real configuration is
never read.
"""

from __future__ import annotations

import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from core.config.config_service import DEFAULTS_INI, ConfigService


class TestConfigService(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.missing = self.tmp / "missing.ini"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write(self, name: str, text: str) -> Path:
        path = self.tmp / name
        path.write_text(text, encoding="utf-8")
        return path

    def test_embedded_defaults_are_typed(self) -> None:
        cfg = ConfigService(defaults_ini=None, machine_ini=None, user_ini=self.missing, environ={})
        self.assertEqual(cfg.renderer.page_format, "letter")
        self.assertEqual(cfg.renderer.margin_mm, 20.0)
        self.assertIs(cfg.renderer.embed_signatures, True)
        self.assertEqual(cfg.notifications.max_attempts, 3)
        self.assertIsInstance(cfg.database.contracts, Path)
        self.assertEqual(cfg.meta_source("Renderer", "page_format"), {"layer": "code", "source": "embedded"})

    def test_shipped_defaults_ini_is_read(self) -> None:
        cfg = ConfigService(defaults_ini=DEFAULTS_INI, machine_ini=None, user_ini=self.missing, environ={})
        self.assertEqual(cfg.meta_source("Renderer", "margin_mm")["layer"], "defaults.ini")

    def test_precedence_env_machine_user(self) -> None:
        machine = self._write("machine.ini", "[Renderer]\nwatermark = DRAFT\nfont_size = 11\n")
        user = self._write("user.ini", "[Renderer]\nfont_size = 10.5\n")
        env = {
            "CONTRACTS_RENDERER__WATERMARK": "ENV",
            "CONTRACTS_RENDERER__PAGE_FORMAT": "a4",
            "CONTRACTS_NOTIFICATIONS__ENABLED": "false",
            "UNRELATED": "x",
        }
        cfg = ConfigService(defaults_ini=None, machine_ini=machine, user_ini=user, environ=env)
        self.assertEqual(cfg.renderer.page_format, "a4")
        self.assertEqual(cfg.renderer.watermark, "DRAFT")
        self.assertEqual(cfg.renderer.font_size, 10.5)
        self.assertIs(cfg.notifications.enabled, False)
        self.assertEqual(cfg.meta_source("Renderer", "page_format")["layer"], "env")
        self.assertEqual(cfg.meta_source("Renderer", "font_size")["layer"], "user")

    def test_get_with_cast(self) -> None:
        cfg = ConfigService(
            defaults_ini=None, machine_ini=None, user_ini=self.missing,
            environ={"CONTRACTS_NOTIFICATIONS__SMTP_PORT": "2525"},
        )
        self.assertEqual(cfg.get("Notifications", "smtp_port", cast=int), 2525)
        self.assertEqual(cfg.get("Notifications", "smtp_port"), "2525")
        self.assertIsNone(cfg.get("Nope", "nothing"))

    def test_reload_picks_up_changes(self) -> None:
        user = self._write("user.ini", "[Security]\nsignature_key = a\n")
        cfg = ConfigService(defaults_ini=None, machine_ini=None, user_ini=user, environ={})
        self.assertEqual(cfg.security.signature_key, "a")
        user.write_text("[Security]\nsignature_key = b\n", encoding="utf-8")
        cfg.reload()
        self.assertEqual(cfg.security.signature_key, "b")


if __name__ == "__main__":
    unittest.main()

"""Tests for configuration, layout map, paths and startup checks."""

import copy
import importlib
import logging
import os
from dataclasses import replace

import pytest

from src.core.config import HiringConfig, TURNSTILE_VERIFY_URL
from src.core import paths
from src.core.paths import validate_paths
from src.core.startup_checks import run_startup_checks
from src.forms.layout import LayoutError, load_layout, validate_layout, field_value


class TestHiringConfig:

    def test_from_env(self):
        cfg = HiringConfig.from_env(env={
            "SMTP_HOST": "smtp.mailgun.org", "SMTP_PORT": "2525",
            "SMTP_USER": "u", "SMTP_PASS": "p",
            "SMTP_FROM_EMAIL": "noreply@discountcuts.com",
            "ADMIN_EMAIL": "admin@discountcuts.com",
            "TURNSTILE_SECRET_KEY": "s",
            "SITE_URL": "https://discountcuts.com/",
            "DEBUG_MODE": "true",
        })
        assert cfg.smtp_port == 2525
        assert cfg.site_url == "https://discountcuts.com"
        assert cfg.debug is True
        assert cfg.resend_with_attachment is False
        assert cfg.turnstile_verify_url == TURNSTILE_VERIFY_URL
        assert cfg.missing_settings() == []

    def test_bad_port_falls_back(self):
        assert HiringConfig.from_env(env={"SMTP_PORT": "smtp"}).smtp_port == 587

    def test_missing_settings_listed(self):
        missing = HiringConfig.from_env(env={"SMTP_HOST": "smtp.mailgun.org"}).missing_settings()
        assert "SMTP_HOST" not in missing
        assert "ADMIN_EMAIL" in missing
        assert "TURNSTILE_SECRET_KEY" in missing

    def test_secrets_not_in_repr(self):
        cfg = HiringConfig(smtp_password="hunter2", turnstile_secret="0xSECRET")
        assert "hunter2" not in repr(cfg)
        assert "0xSECRET" not in repr(cfg)

    def test_dotenv_loaded_without_override(self, tmp_path, monkeypatch):
        env_file = tmp_path / ".env"
        env_file.write_text("ADMIN_EMAIL=fromfile@discountcuts.com\nSMTP_HOST=file.host\n")
        monkeypatch.setenv("SMTP_HOST", "process.host")
        monkeypatch.delenv("ADMIN_EMAIL", raising=False)
        try:
            cfg = HiringConfig.from_env(dotenv_path=str(env_file))
        finally:
            os.environ.pop("ADMIN_EMAIL", None)
        assert cfg.admin_email == "fromfile@discountcuts.com"
        assert cfg.smtp_host == "process.host"

    def test_output_dir_override_lives_in_config(self, monkeypatch, tmp_path):
        monkeypatch.setenv("APPLICATION_OUTPUT_DIR", str(tmp_path))
        importlib.reload(paths)
        assert paths.OUTPUT_DIR == os.path.join(paths.PROJECT_ROOT, "output")
        cfg = HiringConfig.from_env(env={"APPLICATION_OUTPUT_DIR": str(tmp_path)})
        assert cfg.output_dir == str(tmp_path)


class TestLayout:

    def test_bundled_layout_valid(self):
        layout = load_layout()
        assert "cover_letter" in layout["fields"]
        assert layout["fields"]["cover_letter"]["kind"] == "box"

    def test_off_page_rejected(self):
        layout = copy.deepcopy(load_layout())
        layout["fields"]["full_name"]["x"] = 200
        with pytest.raises(LayoutError):
            validate_layout(layout)

    def test_unknown_kind_rejected(self):
        layout = copy.deepcopy(load_layout())
        layout["fields"]["phone"]["kind"] = "signature"
        with pytest.raises(LayoutError):
            validate_layout(layout)

    def test_field_value_source(self):
        class Rec:
            pay_display = "$10.00"
        assert field_value(Rec(), "desired_pay", {"source": "pay_display"}) == "$10.00"
        assert field_value(Rec(), "nothing", {}) == ""


class TestStartupChecks:

    def test_paths_ok_with_font_warning(self, config):
        result = validate_paths(config.template_path, config.font_path, config.output_dir)
        assert result["ok"] is True
        assert any("FONT_PATH" in w for w in result["warnings"])

    def test_unwritable_output_dir(self, config, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        result = validate_paths(config.template_path, config.font_path, str(blocker / "out"))
        assert result["ok"] is False

    def test_run_startup_checks(self, config, app, caplog):
        with caplog.at_level(logging.INFO, logger="hiring.startup"):
            results = run_startup_checks(config, app)
        assert results["failed"] == 0
        assert results["warnings"] == 1     # bundled font absent in tests
        assert ("PASS", "Route registered: /forms/contact") in results["details"]

    def test_missing_settings_warn(self, config):
        results = run_startup_checks(replace(config, admin_email=""))
        assert any("ADMIN_EMAIL" in msg for level, msg in results["details"] if level == "WARN")


class TestLogging:

    def test_json_formatter_extra_keys(self):
        import json
        from logging_config import JSONFormatter
        rec = logging.LogRecord("hiring.orchestrator", logging.INFO, __file__, 1,
                                "pipeline done", None, None)
        rec.outcome = "success"
        rec.duration_ms = 42
        entry = json.loads(JSONFormatter().format(rec))
        assert entry["msg"] == "pipeline done"
        assert entry["outcome"] == "success"
        assert entry["duration_ms"] == 42

    def test_setup_logging_writes_file(self, tmp_path):
        from logging_config import setup_logging
        root = logging.getLogger()
        saved = root.handlers[:], root.level
        try:
            setup_logging(level="INFO", json_logs=True, log_dir=str(tmp_path / "logs"))
            logging.getLogger("hiring.test").info("hello")
            for h in root.handlers:
                h.flush()
            assert (tmp_path / "logs" / "hiring.log").exists()
            assert logging.getLogger("pypdf").level == logging.WARNING
        finally:
            for h in root.handlers:
                h.close()
            root.handlers[:] = saved[0]
            root.setLevel(saved[1])

    def test_human_formatter_appends_extras(self):
        from logging_config import HumanFormatter
        rec = logging.LogRecord("hiring.orchestrator", logging.INFO, __file__, 1,
                                "pipeline done", None, None)
        rec.outcome = "success"
        rec.email = None
        line = HumanFormatter().format(rec)
        assert "[I] hiring.orchestrator: pipeline done" in line
        assert line.endswith(" outcome=success")
        assert "email=" not in line

    def test_log_dir_from_env(self, tmp_path, monkeypatch):
        from logging_config import setup_logging
        monkeypatch.setenv("HIRING_LOG_DIR", str(tmp_path / "envlogs"))
        root = logging.getLogger()
        saved = root.handlers[:], root.level
        try:
            setup_logging(level="INFO", json_logs=False)
            assert (tmp_path / "envlogs" / "hiring.log").exists()
        finally:
            for h in root.handlers:
                h.close()
            root.handlers[:] = saved[0]
            root.setLevel(saved[1])

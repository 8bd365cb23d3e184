"""Tests for the LangGraph application workflow — outcomes, ordering, cleanup."""

import email.errors
import os
from dataclasses import replace
from unittest.mock import patch, MagicMock

import pytest

from app import build_pipelines
from src.agents.mailer import SMTPMailer
from src.agents.orchestrator import ApplicationPipeline, decide_outcome


def _steps(result):
    return [s["step"] for s in result["steps_completed"]]


def _pipeline(config, transport, verifier, **changes):
    return build_pipelines(replace(config, **changes), transport, verifier)["application"]


class TestGraphBuilds:

    def test_default_graph_compiles(self, pipeline):
        assert pipeline.graph is not None
        assert isinstance(pipeline, ApplicationPipeline)

    def test_legacy_graph_compiles(self, config, transport, verifier):
        p = _pipeline(config, transport, verifier, resend_with_attachment=True)
        assert p.graph is not None


class TestDecideOutcome:

    @pytest.mark.parametrize("email,document,expected", [
        ("sent", "generated", "success"),
        ("sent-without-attachment", "generation-failed", "success-with-warning"),
        ("failed", "generated", "success-with-warning"),
        ("failed", "generation-failed", "success-with-warning"),
    ])
    def test_table(self, email, document, expected):
        assert decide_outcome(email, document) == expected


class TestHappyPath:

    def test_success(self, pipeline, valid_form, transport, config):
        result = pipeline.run("POST", valid_form, "203.0.113.9")
        assert result["outcome"] == "success"
        assert result["email"] == "sent"
        assert result["document"] == "generated"
        assert result["artifact_removed"] is True
        assert _steps(result) == ["gate", "validate", "compose", "notify", "cleanup"]
        assert len(transport.sent) == 1
        attachment = transport.sent[0]["attachments"][0]
        assert attachment["data"].startswith(b"%PDF")
        assert os.listdir(config.output_dir) == []
        assert result["duration_ms"] >= 0

    def test_two_runs_two_emails_two_artifacts(self, pipeline, valid_form, transport, config):
        pipeline.run("POST", valid_form)
        pipeline.run("POST", valid_form)
        assert len(transport.sent) == 2
        names = {m["attachments"][0]["name"] for m in transport.sent}
        assert len(names) == 2
        assert os.listdir(config.output_dir) == []


class TestRejections:

    def test_honeypot(self, pipeline, valid_form, transport, verifier):
        result = pipeline.run("POST", dict(valid_form, honeypot="buy now"))
        assert result["outcome"] == "rejected:spam"
        assert verifier.calls == []
        assert transport.sent == []

    def test_get(self, pipeline, valid_form, transport):
        result = pipeline.run("GET", valid_form)
        assert result["outcome"] == "rejected:method"
        assert _steps(result) == ["gate:rejected"]
        assert transport.sent == []

    def test_turnstile(self, pipeline, valid_form, transport, verifier):
        verifier.ok = False
        assert pipeline.run("POST", valid_form)["outcome"] == "rejected:turnstile"
        assert transport.sent == []

    def test_whitespace_honeypot(self, pipeline, valid_form, transport, verifier):
        result = pipeline.run("POST", dict(valid_form, honeypot=" "))
        assert result["outcome"] == "rejected:spam"
        assert verifier.calls == []
        assert transport.sent == []

    def test_header_injection_in_name(self, pipeline, valid_form, transport):
        name = "Bob\nX-Injected: yes"
        result = pipeline.run("POST", dict(valid_form, full_name=name, printed_name=name))
        assert result["outcome"] == "invalid:full_name,printed_name"
        assert transport.sent == []

    def test_printed_name_mismatch(self, pipeline, valid_form):
        result = pipeline.run("POST", dict(valid_form, printed_name="J. Doe"))
        assert result["outcome"].startswith("invalid:")
        assert "printed_name" in result["fields"]

    def test_invalid_fields(self, pipeline, valid_form, transport, config):
        result = pipeline.run("POST", dict(valid_form, phone="555-123-456", zip="1234"))
        assert result["outcome"] == "invalid:phone,zip"
        assert result["fields"] == ["phone", "zip"]
        assert "record" not in result
        assert transport.sent == []
        assert os.listdir(config.output_dir) == []


class TestDegradedPaths:

    def test_template_missing_still_emails(self, config, transport, verifier, valid_form):
        p = _pipeline(config, transport, verifier,
                      template_path=os.path.join(config.output_dir, "missing.pdf"))
        result = p.run("POST", valid_form)
        assert result["outcome"] == "success-with-warning"
        assert result["document"] == "generation-failed"
        assert result["email"] == "sent-without-attachment"
        assert transport.sent[0]["attachments"] == []

    def test_email_failure_still_cleans_up(self, pipeline, valid_form, transport, config):
        transport.fail = True
        result = pipeline.run("POST", valid_form)
        assert result["outcome"] == "success-with-warning"
        assert result["email"] == "failed"
        assert result["artifact_removed"] is True
        assert os.listdir(config.output_dir) == []

    def test_header_error_from_smtp_is_email_failed(self, config, verifier, valid_form):
        p = build_pipelines(config, SMTPMailer(config), verifier)["application"]
        with patch("src.agents.mailer.smtplib.SMTP") as smtp:
            server = MagicMock()
            server.send_message.side_effect = email.errors.HeaderParseError("embedded header")
            smtp.return_value.__enter__.return_value = server
            result = p.run("POST", valid_form)
        assert result["email"] == "failed"
        assert result["outcome"] == "success-with-warning"
        assert not result.get("error")
        assert "HeaderParseError" in result["email_error"]
        assert os.listdir(config.output_dir) == []

    def test_crash_after_compose_removes_artifact(self, pipeline, valid_form, config):
        with patch.object(pipeline.notifier, "notify", side_effect=RuntimeError("smtp lib bug")):
            result = pipeline.run("POST", valid_form)
        assert result["outcome"] == "success-with-warning"
        assert "smtp lib bug" in result["error"]
        assert os.listdir(config.output_dir) == []

    def test_crash_before_validation(self, pipeline, valid_form):
        with patch.object(pipeline.gate, "require", side_effect=RuntimeError("boom")):
            result = pipeline.run("POST", valid_form)
        assert result["outcome"] == "rejected:error"


class TestLegacyOrder:

    def test_resend_with_attachment(self, config, transport, verifier, valid_form):
        p = _pipeline(config, transport, verifier, resend_with_attachment=True)
        result = p.run("POST", valid_form)
        assert _steps(result) == ["gate", "validate", "notify", "compose", "resend", "cleanup"]
        assert len(transport.sent) == 2
        assert transport.sent[0]["attachments"] == []
        assert transport.sent[1]["attachments"]
        assert result["outcome"] == "success"
        assert os.listdir(config.output_dir) == []

    def test_no_resend_without_document(self, config, transport, verifier, valid_form):
        p = _pipeline(config, transport, verifier, resend_with_attachment=True,
                      template_path=os.path.join(config.output_dir, "missing.pdf"))
        result = p.run("POST", valid_form)
        assert "resend:skipped" in _steps(result)
        assert len(transport.sent) == 1
        assert result["outcome"] == "success-with-warning"

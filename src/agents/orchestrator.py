"""
orchestrator.py — LangGraph workflow for employment application intake

Default order (compose before notify, one email):

    gate ─┬─> validate ─┬─> compose ─> notify ─> cleanup ─> END
          └─> END       └─> END
       (rejected)     (invalid)

Legacy order (RESEND_WITH_ATTACHMENT=true): the summary goes out first,
then the PDF is composed and the email is resent with it attached:

    gate ─> validate ─> notify ─> compose ─> resend ─> cleanup ─> END

Outcome codes (state["outcome"]):
    success                  email delivered with PDF, document generated
    success-with-warning     one (or both) of email / document degraded
    rejected:<reason>        spam | method | turnstile
    invalid:<f1,f2,...>      failing field ids, rule order

The transient PDF is deleted in cleanup whatever happened to the email.
"""

import logging
from datetime import datetime
from typing import TypedDict, Any

from langgraph.graph import StateGraph, END

from src.agents.notifier import EMAIL_SENT, EMAIL_FAILED
from src.core.errors import AbuseRejected, ValidationFailed
from src.forms.application_filler import remove_artifact
from src.forms.validator import validate_application

log = logging.getLogger("hiring.orchestrator")

OUTCOME_SUCCESS = "success"
OUTCOME_WARNING = "success-with-warning"
OUTCOME_REJECTED = "rejected"
OUTCOME_INVALID = "invalid"

DOCUMENT_GENERATED = "generated"
DOCUMENT_FAILED = "generation-failed"


class ApplicationState(TypedDict, total=False):
    """State for one submission, start to finish."""
    method: str
    form: dict
    remote_ip: str
    reason: str
    fields: list
    record: Any
    document: str
    document_error: str
    pdf_path: str
    email: str
    email_error: str
    artifact_removed: bool
    outcome: str
    error: str
    steps_completed: list
    started_at: str
    completed_at: str


# ─── Utility ─────────────────────────────────────────────────────────────────

def _step(state: dict, name: str) -> dict:
    """Record a completed step."""
    steps = state.get("steps_completed", [])
    steps.append({"step": name, "timestamp": datetime.now().isoformat()})
    state["steps_completed"] = steps
    return state


def decide_outcome(email: str, document: str) -> str:
    if email == EMAIL_SENT and document == DOCUMENT_GENERATED:
        return OUTCOME_SUCCESS
    return OUTCOME_WARNING


def _should_continue(state: ApplicationState) -> str:
    """Router: continue or end on a gate/validation failure."""
    if state.get("error"):
        return END
    return "next"


def _form_dict(form) -> dict:
    if form is None:
        return {}
    if hasattr(form, "to_dict"):
        return form.to_dict()
    return dict(form)


# ═════════════════════════════════════════════════════════════════════════════
# Application Pipeline
# ═════════════════════════════════════════════════════════════════════════════

class ApplicationPipeline:
    """Wires gate, validator, filler and notifier into one compiled graph."""

    def __init__(self, config, gate, filler, notifier):
        self.config = config
        self.gate = gate
        self.filler = filler
        self.notifier = notifier
        self.graph = self.build_graph().compile()

    # ── Nodes ────────────────────────────────────────────────────────────

    def _gate_node(self, state: ApplicationState) -> ApplicationState:
        """Honeypot, method, Turnstile."""
        state["started_at"] = datetime.now().isoformat()
        state["steps_completed"] = []
        try:
            self.gate.require(state.get("method", ""), state.get("form", {}),
                              state.get("remote_ip", ""))
        except AbuseRejected as e:
            state["reason"] = e.reason
            state["outcome"] = f"{OUTCOME_REJECTED}:{e.reason}"
            state["error"] = str(e)
            return _step(state, "gate:rejected")
        return _step(state, "gate")

    def _validate_node(self, state: ApplicationState) -> ApplicationState:
        """Server-side field rules; builds the SubmissionRecord."""
        try:
            state["record"] = validate_application(state.get("form", {})).unwrap()
        except ValidationFailed as e:
            state["fields"] = e.fields
            state["outcome"] = f"{OUTCOME_INVALID}:{','.join(e.fields)}"
            state["error"] = str(e)
            return _step(state, "validate:invalid")
        return _step(state, "validate")

    def _compose_node(self, state: ApplicationState) -> ApplicationState:
        """Fill the PDF template. Failure here only degrades the outcome."""
        try:
            result = self.filler.compose(state["record"])
        except Exception as e:
            result = {"ok": False, "error": str(e)}
        if result.get("ok"):
            state["document"] = DOCUMENT_GENERATED
            state["pdf_path"] = result["path"]
            return _step(state, "compose")
        state["document"] = DOCUMENT_FAILED
        state["document_error"] = result.get("error", "")
        if self.config.debug:
            log.warning("Document generation failed: %s", state["document_error"])
        return _step(state, "compose:failed")

    def _notify_node(self, state: ApplicationState) -> ApplicationState:
        """Email the admin, attaching the PDF if there is one."""
        result = self.notifier.notify(state["record"], state.get("pdf_path"))
        state["email"] = result["email"]
        state["email_error"] = result.get("error") or ""
        suffix = ":failed" if result["email"] == EMAIL_FAILED else ""
        return _step(state, "notify" + suffix)

    def _resend_node(self, state: ApplicationState) -> ApplicationState:
        """Legacy order: resend with the PDF that didn't exist at first send."""
        first = {"email": state.get("email", ""), "attached": False,
                 "error": state.get("email_error") or None}
        result = self.notifier.notify_late_attachment(state["record"], first,
                                                      state.get("pdf_path"))
        if result is first:
            return _step(state, "resend:skipped")
        state["email"] = result["email"]
        state["email_error"] = result.get("error") or ""
        return _step(state, "resend")

    def _cleanup_node(self, state: ApplicationState) -> ApplicationState:
        """Delete the transient PDF and settle the outcome."""
        state["artifact_removed"] = self._remove(state.get("pdf_path"))
        state["outcome"] = decide_outcome(state.get("email", ""),
                                          state.get("document", ""))
        state["completed_at"] = datetime.now().isoformat()
        return _step(state, "cleanup")

    def _remove(self, path) -> bool:
        try:
            return remove_artifact(path)
        except OSError as e:
            log.error("Could not delete application artifact %s: %s", path, e)
            return False

    # ── Graph ────────────────────────────────────────────────────────────

    def build_graph(self) -> StateGraph:
        """Build the intake workflow graph for the configured send order."""
        graph = StateGraph(ApplicationState)

        graph.add_node("gate", self._gate_node)
        graph.add_node("validate", self._validate_node)
        graph.add_node("compose", self._compose_node)
        graph.add_node("notify", self._notify_node)
        graph.add_node("cleanup", self._cleanup_node)

        graph.set_entry_point("gate")
        graph.add_conditional_edges("gate", _should_continue,
                                    {"next": "validate", END: END})

        if self.config.resend_with_attachment:
            graph.add_node("resend", self._resend_node)
            graph.add_conditional_edges("validate", _should_continue,
                                        {"next": "notify", END: END})
            graph.add_edge("notify", "compose")
            graph.add_edge("compose", "resend")
            graph.add_edge("resend", "cleanup")
        else:
            graph.add_conditional_edges("validate", _should_continue,
                                        {"next": "compose", END: END})
            graph.add_edge("compose", "notify")
            graph.add_edge("notify", "cleanup")

        graph.add_edge("cleanup", END)
        return graph

    # ── Runner ───────────────────────────────────────────────────────────

    def run(self, method: str, form, remote_ip: str = "") -> dict:
        """
        Process one submission.

        Returns the final state: outcome code, email/document status,
        failing fields or rejection reason, and a steps_completed trail.
        """
        start = datetime.now()
        inputs = {"method": method or "", "form": _form_dict(form),
                  "remote_ip": remote_ip or ""}
        state = dict(inputs)
        try:
            for state in self.graph.stream(inputs, stream_mode="values"):
                pass
        except Exception as e:
            log.error("Application pipeline crashed: %s", e, exc_info=True)
            if not state.get("artifact_removed"):
                state["artifact_removed"] = self._remove(state.get("pdf_path"))
            if state.get("record") is not None:
                state["outcome"] = decide_outcome(state.get("email", ""),
                                                  state.get("document", ""))
            else:
                state["outcome"] = f"{OUTCOME_REJECTED}:error"
            state["error"] = str(e)

        result = dict(state)
        result["duration_ms"] = int((datetime.now() - start).total_seconds() * 1000)
        log.info("Application pipeline: %s in %dms — steps: %s",
                 result.get("outcome"), result["duration_ms"],
                 [s["step"] for s in result.get("steps_completed", [])],
                 extra={"outcome": result.get("outcome"), "remote_ip": inputs["remote_ip"],
                        "email": result.get("email"), "document": result.get("document"),
                        "duration_ms": result["duration_ms"]})
        return result

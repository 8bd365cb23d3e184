"""
src/core/startup_checks.py — Runtime Self-Test on App Boot

Runs when the app starts. Catches the misconfigurations that otherwise
only show up on the first real submission:

  1. Paths — template, font, layout map present; output dir writable
  2. Layout — application_layout.json parses and every box fits the page
  3. Config — SMTP / admin / Turnstile settings are filled in
  4. Routes — form endpoints registered once

A failed check is logged loudly but never stops the app: the pipeline
degrades (no PDF, fallback font) rather than refusing applications.
"""

import logging

log = logging.getLogger("hiring.startup")


def run_startup_checks(config, app=None) -> dict:
    """Run all startup validation checks. Call from app.py after blueprint registration.

    Returns:
        {"passed": int, "failed": int, "warnings": int, "details": [...]}
    """
    results = {"passed": 0, "failed": 0, "warnings": 0, "details": []}

    def _pass(msg):
        results["passed"] += 1
        results["details"].append(("PASS", msg))
        log.info("%s", msg)

    def _fail(msg):
        results["failed"] += 1
        results["details"].append(("FAIL", msg))
        log.error("STARTUP CHECK FAILED: %s", msg)

    def _warn(msg):
        results["warnings"] += 1
        results["details"].append(("WARN", msg))
        log.warning("%s", msg)

    # ── 1. Path Validation ────────────────────────────────────────────────────
    try:
        from src.core.paths import validate_paths
        path_result = validate_paths(config.template_path, config.font_path, config.output_dir)
        if path_result["ok"]:
            _pass(f"Paths valid (OUTPUT_DIR={config.output_dir})")
        else:
            for err in path_result["errors"]:
                _fail(err)
        for warn in path_result.get("warnings", []):
            _warn(warn)
    except Exception as e:
        _fail(f"Path validation error: {e}")

    # ── 2. Layout Map ─────────────────────────────────────────────────────────
    try:
        from src.forms.layout import load_layout
        layout = load_layout()
        _pass(f"Overlay layout valid ({len(layout['fields'])} fields)")
    except Exception as e:
        _fail(f"Overlay layout invalid: {e}")

    # ── 3. Config Completeness ────────────────────────────────────────────────
    missing = config.missing_settings()
    if missing:
        _warn(f"Settings not configured: {', '.join(missing)}")
    else:
        _pass("Mail and Turnstile settings present")

    # ── 4. Route Integrity (if app provided) ──────────────────────────────────
    if app:
        try:
            rules = [r.rule for r in app.url_map.iter_rules()]
            for route in ("/forms/employment_application", "/forms/contact"):
                if rules.count(route) == 1:
                    _pass(f"Route registered: {route}")
                else:
                    _fail(f"Route {route} registered {rules.count(route)} times")
        except Exception as e:
            _warn(f"Route check skipped: {e}")

    # ── Summary ──────────────────────────────────────────────────────────────
    total = results["passed"] + results["failed"] + results["warnings"]
    if results["failed"] > 0:
        log.error("STARTUP: %d/%d checks FAILED — app may not work correctly",
                  results["failed"], total)
    else:
        log.info("STARTUP: All %d checks passed (%d warnings)",
                 results["passed"], results["warnings"])

    return results

"""
src/core/paths.py — Centralized Path Configuration

Single source of truth for the filesystem locations the intake pipeline
touches: the committed application template, the bundled font, and the
per-run output directory for transient PDF artifacts.

Every value here is a default. HiringConfig can override each one from the
environment, so nothing below is read directly by the pipeline components.
"""

import os

# ── Project Root ──────────────────────────────────────────────────────────────
_THIS_FILE = os.path.abspath(__file__)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(_THIS_FILE)))

# ── Forms-local files (live alongside the filler module) ─────────────────────
FORMS_DIR = os.path.join(PROJECT_ROOT, "src", "forms")
TEMPLATE_PATH = os.path.join(FORMS_DIR, "application_template.pdf")
FONT_PATH = os.path.join(FORMS_DIR, "fonts", "Montserrat-Regular.ttf")
LAYOUT_PATH = os.path.join(FORMS_DIR, "application_layout.json")

# ── Transient output (artifacts are deleted after each notification) ────────
OUTPUT_DIR = os.path.join(PROJECT_ROOT, "output")

# ── Data / logs ──────────────────────────────────────────────────────────────
DATA_DIR = os.path.join(PROJECT_ROOT, "data")
LOG_DIR = os.path.join(DATA_DIR, "logs")


def validate_paths(template_path: str = TEMPLATE_PATH,
                   font_path: str = FONT_PATH,
                   output_dir: str = OUTPUT_DIR) -> dict:
    """Runtime validation — call at app startup to catch path issues early.

    A missing template or font is a warning, not an error: the composer
    degrades (no document / fallback font) instead of failing requests.

    Returns:
        {"ok": bool, "errors": [str], "warnings": [str], "resolved": {name: path}}
    """
    result = {"ok": True, "errors": [], "warnings": [], "resolved": {}}

    checks = {
        "PROJECT_ROOT": (PROJECT_ROOT, True),
        "LAYOUT_PATH": (LAYOUT_PATH, True),
        "TEMPLATE_PATH": (template_path, False),
        "FONT_PATH": (font_path, False),
    }

    for name, (path, required) in checks.items():
        result["resolved"][name] = path
        if not os.path.exists(path):
            if required:
                result["errors"].append(f"{name} not found: {path}")
                result["ok"] = False
            else:
                result["warnings"].append(f"{name} not found: {path}")

    # Verify the output dir can hold artifacts
    result["resolved"]["OUTPUT_DIR"] = output_dir
    test_file = os.path.join(output_dir, ".write_test")
    try:
        os.makedirs(output_dir, exist_ok=True)
        with open(test_file, "w") as f:
            f.write("ok")
        os.remove(test_file)
    except OSError as e:
        result["errors"].append(f"OUTPUT_DIR not writable: {e}")
        result["ok"] = False

    return result

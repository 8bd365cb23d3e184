"""Application validation and PDF composition.

Key exports:
    validate_application()  — Server-side field rules → SubmissionRecord
    load_layout()           — Read and check the overlay coordinate map
    ApplicationFiller       — Stamp a record onto the application template
"""

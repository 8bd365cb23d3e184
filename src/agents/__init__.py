"""Pipeline stages for the public forms.

Modules:
    turnstile      — Honeypot / method / Cloudflare Turnstile gate
    mailer         — SMTP transport (STARTTLS, HTML + PDF attachment)
    notifier       — Admin notification for a valid application
    contact        — General contact form relay
    orchestrator   — LangGraph workflow tying the application stages together
"""

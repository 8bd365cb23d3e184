"""
Discount Cuts Hiring — Employment application intake

Packages:
    api/        Public form routes (application redirect, contact JSON, health)
    forms/      Field validation, overlay layout, and PDF composition
    agents/     Pipeline stages: abuse gate, notifier, mailer, contact relay, orchestrator
    core/       Shared configuration, errors, paths, security, startup checks
"""

"""Shared configuration, errors, paths and security middleware."""

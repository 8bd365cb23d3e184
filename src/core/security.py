"""
Security Middleware — Rate Limiting + Response Headers
======================================================
Public form endpoints are unauthenticated, so the only brake on a bot that
gets past Turnstile is a per-IP budget.

Rate Limiting:
- In-memory token bucket per IP address
- Configurable limits per endpoint group
- 429 response when exceeded
"""

import os
import time
import logging
import functools
from threading import Lock

from flask import request, jsonify

log = logging.getLogger("hiring.security")

# ═══════════════════════════════════════════════════════════════════════════════
# Rate Limiting
# ═══════════════════════════════════════════════════════════════════════════════

class RateLimiter:
    """Simple in-memory rate limiter using token bucket algorithm."""

    def __init__(self, max_age: int = 3600, prune_every: int = 500):
        self._buckets = {}
        self._lock = Lock()
        self.max_age = max_age
        self.prune_every = prune_every
        self._calls = 0

    def check(self, key: str, max_tokens: int = 60, refill_rate: float = 1.0) -> bool:
        """Check if request is allowed. Returns True if allowed, False if rate limited.

        Args:
            key: Unique key for the bucket (usually IP + endpoint group)
            max_tokens: Maximum burst capacity
            refill_rate: Tokens added per second
        """
        with self._lock:
            now = time.time()
            self._calls += 1
            if self._calls % self.prune_every == 0:
                self._prune(now, self.max_age)
            bucket = self._buckets.setdefault(key, {"tokens": max_tokens, "last_refill": now})
            elapsed = now - bucket["last_refill"]

            # Refill tokens
            bucket["tokens"] = min(max_tokens, bucket["tokens"] + elapsed * refill_rate)
            bucket["last_refill"] = now

            if bucket["tokens"] >= 1:
                bucket["tokens"] -= 1
                return True
            return False

    def _prune(self, now: float, max_age: int):
        """Drop buckets idle longer than max_age seconds. Caller holds the lock."""
        stale = [k for k, v in self._buckets.items() if now - v["last_refill"] > max_age]
        for k in stale:
            del self._buckets[k]

    def reset(self):
        with self._lock:
            self._buckets.clear()


# Global rate limiter instance
_limiter = RateLimiter()


# Rate limit tiers
RATE_LIMITS = {
    "default":     {"max_tokens": 60,  "refill_rate": 2.0},   # 120/min
    "form":        {"max_tokens": 5,   "refill_rate": 0.1},   # 6/min (PDF gen + SMTP per post)
}


def rate_limit(tier: str = "default"):
    """Decorator to apply rate limiting to a route."""
    def decorator(f):
        @functools.wraps(f)
        def wrapper(*args, **kwargs):
            if os.environ.get("DISABLE_RATE_LIMIT", "").lower() == "true":
                return f(*args, **kwargs)

            ip = request.remote_addr or "unknown"
            key = f"{ip}:{tier}"
            limits = RATE_LIMITS.get(tier, RATE_LIMITS["default"])

            if not _limiter.check(key, **limits):
                log.warning("Rate limit exceeded: %s tier=%s", ip, tier)
                return jsonify({"status": "error",
                                "message": "Too many submissions. Please try again shortly."}), 429

            return f(*args, **kwargs)
        return wrapper
    return decorator


# ═══════════════════════════════════════════════════════════════════════════════
# Security Headers Middleware
# ═══════════════════════════════════════════════════════════════════════════════

def add_security_headers(response):
    """Add security headers to every response."""
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "SAMEORIGIN"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    if not response.headers.get("Cache-Control"):
        response.headers["Cache-Control"] = "no-store"
    return response


def init_security(app):
    """Initialize security middleware on the Flask app."""
    app.after_request(add_security_headers)
    log.info("Security middleware initialized: rate limiting, security headers")

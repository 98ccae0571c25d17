"""Utilities for safe structured logging fields."""

from __future__ import annotations

import hashlib
from typing import Any


def _digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]


def safe_log_identifier(value: Any, *, prefix: str) -> str:
    """Return a deterministic non-reversible token for log correlation fields."""
    text = str(value or "").strip()
    if not text:
        return f"{prefix}-missing"
    return f"{prefix}-{_digest(text)}"


def safe_log_email(value: Any) -> str:
    """Hash the local part of an email address, keeping the domain for triage."""
    text = str(value or "").strip().lower()
    if not text:
        return "email-missing"

    local, sep, domain = text.rpartition("@")
    if not sep or not local:
        return f"email-{_digest(text)}"
    return f"email-{_digest(local)}@{domain}"

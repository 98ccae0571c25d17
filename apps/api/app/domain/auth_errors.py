"""Provider error classification into user-presentable sentences."""

import re

from app.schemas.credentials import AuthFailure

GENERIC_FAILURE_MESSAGE = "An error occurred during authentication."

_BAD_CREDENTIALS_MESSAGE = "Invalid email or password. Please check your credentials and try again."

_MESSAGES_BY_CODE: dict[str, str] = {
    "email-already-in-use": "An account with this email already exists. Please try logging in instead.",
    "invalid-email": "Please enter a valid email address.",
    "weak-password": "Password should be at least 6 characters long.",
    "user-not-found": "No account found with this email. Please sign up instead.",
    "wrong-password": "Incorrect password. Please try again.",
    "too-many-requests": "Too many failed attempts. Please try again later.",
    "invalid-credential": _BAD_CREDENTIALS_MESSAGE,
    "invalid-login-credentials": _BAD_CREDENTIALS_MESSAGE,
}

_CODE_NAMESPACE = "auth/"
_PROVIDER_PREFIX = re.compile(r"^Firebase: ")
_CODE_SUFFIX = re.compile(r" \(auth/.*\)\.?$")


def _normalize_code(code: str) -> str:
    code = code.strip()
    if code.startswith(_CODE_NAMESPACE):
        return code[len(_CODE_NAMESPACE):]
    return code


def clean_provider_message(message: str | None) -> str:
    """Strip the provider prefix and trailing ``(auth/...)`` suffix from a raw message."""
    if not message:
        return ""
    cleaned = _PROVIDER_PREFIX.sub("", message, count=1)
    return _CODE_SUFFIX.sub("", cleaned, count=1)


def classify(failure: AuthFailure) -> str:
    """Map a failure to exactly one human-readable sentence. Never raises."""
    if failure.code:
        known = _MESSAGES_BY_CODE.get(_normalize_code(failure.code))
        if known is not None:
            return known
        return clean_provider_message(failure.message) or GENERIC_FAILURE_MESSAGE

    return failure.message or GENERIC_FAILURE_MESSAGE


__all__ = ["GENERIC_FAILURE_MESSAGE", "classify", "clean_provider_message"]

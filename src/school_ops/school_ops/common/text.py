from __future__ import annotations

import unicodedata


def normalize_email(value: str) -> str:
    return (value or "").strip().lower()


def normalize_secret(value: str) -> str:
    """Trim and case-fold a surname secret.

    NFC first so that a composed and a decomposed accent compare equal.
    """
    return unicodedata.normalize("NFC", value or "").strip().casefold()


def full_name(first_name: str, last_name: str) -> str:
    return f"{first_name or ''} {last_name or ''}".strip()

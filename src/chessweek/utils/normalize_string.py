from __future__ import annotations


def normalize_string(value: str | None) -> str:
    """
    Normalizes a string by stripping surrounding whitespace and lowercasing it.

    Usernames coming from the dashboard and from Chess.com payloads are
    compared through this helper.

    Examples
    --------
    >>> normalize_string("  Hikaru ")
    'hikaru'
    >>> normalize_string(None)
    ''
    """
    return (value or "").strip().lower()

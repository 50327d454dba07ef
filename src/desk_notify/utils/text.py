from __future__ import annotations


def sanitize_text(value: object) -> str:
    """
    D-Bus strings cannot carry NUL; strip it from anything headed for the bus.
    """
    return str(value or "").replace("\0", "")

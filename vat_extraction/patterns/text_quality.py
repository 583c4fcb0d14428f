import re

_READABLE = re.compile(r"[a-zA-Z0-9\s€$£¥]")


def readability_ratio(text: str) -> float:
    """Share of alphanumeric, whitespace and currency characters in text."""
    if not text:
        return 0.0
    readable = len(_READABLE.findall(text))
    return readable / len(text)

from __future__ import annotations

import logging

__all__ = [
    "SAMPLE_LINES",
    "detect_delimiter",
]

logger = logging.getLogger(__name__)

SAMPLE_LINES = 3

_NAMES = {",": "comma", ";": "semicolon", "\t": "tab"}


def detect_delimiter(text: str) -> str:
    """Pick the delimiter that occurs most often in the first lines of ``text``.

    Semicolon or tab win only with a strictly higher count than both other
    candidates; every tie resolves to comma.
    """
    sample = "\n".join(text.splitlines()[:SAMPLE_LINES])
    commas = sample.count(",")
    semicolons = sample.count(";")
    tabs = sample.count("\t")

    if semicolons > commas and semicolons > tabs:
        delimiter = ";"
    elif tabs > commas and tabs > semicolons:
        delimiter = "\t"
    else:
        delimiter = ","
    logger.info("Detected CSV delimiter: %s", _NAMES[delimiter])
    return delimiter

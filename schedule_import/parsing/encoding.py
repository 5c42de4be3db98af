from __future__ import annotations

import codecs
import logging
from dataclasses import dataclass

import chardet

"""Byte-encoding detection for uploaded schedule files.

Uploads arrive as UTF-8, UTF-8 with BOM, or a legacy Cyrillic code page
(windows-1251, KOI8-R, ...). Content that decodes strictly as UTF-8 is taken
as UTF-8 without asking chardet. Otherwise chardet's guess is used whenever it
names a known codec that decodes the bytes cleanly, whatever its confidence:
short Cyrillic files get low scores even when the codec is right. Only a
missing, unknown or failing guess falls back to the configured encoding with
replacement characters, so detection never fails.
"""

__all__ = [
    "DecodedText",
    "detect_and_decode",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedText:
    text: str
    encoding: str  # codec actually used for decoding
    confidence: float = 0.0
    fallback_used: bool = False


def _canonical_codec(name: str) -> str | None:
    try:
        return codecs.lookup(name).name
    except LookupError:
        return None


def _decode_fallback(content: bytes, fallback: str, confidence: float) -> DecodedText:
    codec = _canonical_codec(fallback) or "utf-8"
    if codec == "utf-8":
        codec = "utf-8-sig"  # drop a BOM if there is one
    text = content.decode(codec, errors="replace")
    return DecodedText(text=text, encoding=fallback, confidence=confidence, fallback_used=True)


def _decode_utf8(content: bytes) -> DecodedText | None:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        return None
    encoding = "UTF-8-SIG" if content.startswith(codecs.BOM_UTF8) else "utf-8"
    logger.info("Detected file encoding: %s", encoding)
    return DecodedText(text=text, encoding=encoding, confidence=1.0)


def detect_and_decode(
    content: bytes,
    fallback: str = "utf-8",
    min_confidence: float = 0.0,
) -> DecodedText:
    """Detect the encoding of ``content`` and decode it.

    Args:
        content: Raw file bytes
        fallback: Encoding used when detection is inconclusive
        min_confidence: chardet confidence below which its guess is ignored;
            0 trusts any codec chardet names

    Returns:
        DecodedText with the decoded text and the codec used
    """
    if not content:
        return DecodedText(text="", encoding=fallback, fallback_used=True)

    utf8 = _decode_utf8(content)
    if utf8 is not None:
        return utf8

    guess = chardet.detect(content)
    detected = guess.get("encoding")
    confidence = float(guess.get("confidence") or 0.0)
    logger.debug("chardet.detect -> %s", guess)

    if not detected or confidence < min_confidence:
        logger.info("encoding detection inconclusive (%s, %.2f); decoding as %s", detected, confidence, fallback)
        return _decode_fallback(content, fallback, confidence)

    codec = _canonical_codec(detected)
    if codec is None:
        logger.warning("unknown codec reported by detection: %s; decoding as %s", detected, fallback)
        return _decode_fallback(content, fallback, confidence)

    try:
        text = content.decode(codec)
    except UnicodeDecodeError:
        logger.warning("content is not valid %s; decoding as %s", detected, fallback)
        return _decode_fallback(content, fallback, confidence)

    logger.info("Detected file encoding: %s (confidence %.2f)", detected, confidence)
    return DecodedText(text=text, encoding=detected, confidence=confidence)

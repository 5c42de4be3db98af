from .delimiter import detect_delimiter
from .encoding import DecodedText, detect_and_decode
from .headers import HeaderResolver, ResolvedHeaders
from .normalize import normalize_row, parse_day, parse_time
from .rows import ParsedTable, parse_grid, parse_text

__all__ = [
    "DecodedText",
    "HeaderResolver",
    "ParsedTable",
    "ResolvedHeaders",
    "detect_and_decode",
    "detect_delimiter",
    "normalize_row",
    "parse_day",
    "parse_grid",
    "parse_text",
    "parse_time",
]

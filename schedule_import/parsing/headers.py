from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass

from ..models.config_models import CANONICAL_FIELDS, HeaderAliasTable
from ..models.row_data import RawRow

"""Map arbitrary (English/Russian, inconsistently cased) header labels to
canonical fields.

Resolution runs once per import against the discovered label set:

1. exact match against the alias table, field by field;
2. for fields still unresolved, the first discovered label (in file order)
   whose casefolded text contains one of the field's keywords. English
   keywords only match at the start of a word.

A label claimed by one field is never reused for another.
"""

__all__ = [
    "ResolvedHeaders",
    "HeaderResolver",
]

logger = logging.getLogger(__name__)


def _keyword_matches(keyword: str, folded_label: str) -> bool:
    """Substring match; ASCII keywords must also start a word ("end" misses "Weekend")."""
    if not keyword.isascii():
        return keyword in folded_label
    return re.search(r"(?<![a-z0-9])" + re.escape(keyword), folded_label) is not None


@dataclass(frozen=True)
class ResolvedHeaders:
    mapping: dict[str, str | None]  # canonical field -> discovered label

    def label_for(self, field_name: str) -> str | None:
        return self.mapping.get(field_name)

    def extract(self, row: RawRow) -> dict[str, str | None]:
        """Pull the canonical fields out of one raw row."""
        return {
            field_name: (row.cells.get(label) if label is not None else None)
            for field_name, label in self.mapping.items()
        }

    def unresolved(self) -> list[str]:
        return [f for f, label in self.mapping.items() if label is None]


class HeaderResolver:
    """Resolve discovered header labels using an injected HeaderAliasTable."""

    def __init__(self, table: HeaderAliasTable | None = None) -> None:
        self.table = table or HeaderAliasTable()

    def resolve(self, headers: Sequence[str]) -> ResolvedHeaders:
        discovered = [h for h in headers if h]
        mapping: dict[str, str | None] = {f: None for f in CANONICAL_FIELDS}
        claimed: set[str] = set()

        for field_name in CANONICAL_FIELDS:
            for alias in self.table.aliases_for(field_name):
                if alias in discovered and alias not in claimed:
                    mapping[field_name] = alias
                    claimed.add(alias)
                    break

        for field_name in CANONICAL_FIELDS:
            if mapping[field_name] is not None:
                continue
            keywords = self.table.keywords_for(field_name)
            if not keywords:
                continue
            for label in discovered:
                if label in claimed:
                    continue
                folded = label.casefold()
                if any(_keyword_matches(k, folded) for k in keywords):
                    logger.info("Found %s column through partial match: %s", field_name, label)
                    mapping[field_name] = label
                    claimed.add(label)
                    break

        extra = [h for h in discovered if h in self.table.informational]
        if extra:
            logger.debug("Additional columns present but not imported: %s", ", ".join(extra))

        resolved = ResolvedHeaders(mapping=mapping)
        logger.debug("header mapping: %s", mapping)
        return resolved

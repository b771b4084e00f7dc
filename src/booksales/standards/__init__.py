"""Static vocabularies shared by the booksales pipeline stages."""

from .aliases import CANONICAL_FIELDS, DEFAULT_HEADER_ALIASES, IDENTIFIER, QUANTITY, REPORT_COLUMNS
from .categories import DEFAULT_CATEGORY_RULES

__all__ = [
    "CANONICAL_FIELDS",
    "DEFAULT_CATEGORY_RULES",
    "DEFAULT_HEADER_ALIASES",
    "IDENTIFIER",
    "QUANTITY",
    "REPORT_COLUMNS",
]

"""Default keyword rules for coarse book categorization.

Rules are evaluated top to bottom and the first match wins, so a record tagged
both ``juvenile fiction`` and ``fiction`` lands in Children's.
"""
from __future__ import annotations

from typing import Dict, List

CHILDRENS = "Children's"
YOUNG_ADULT = "Young Adult"
FICTION = "Fiction"
NON_FICTION = "Non-Fiction"
UNKNOWN_CATEGORY = "Unknown"

CATEGORIES = (CHILDRENS, YOUNG_ADULT, FICTION, NON_FICTION, UNKNOWN_CATEGORY)

DEFAULT_CATEGORY_RULES: List[Dict[str, object]] = [
    {
        "category": CHILDRENS,
        "keywords": [
            "children's books",
            "childrens books",
            "juvenile",
            "picture book",
            "early reader",
            "bedtime",
            "ages 0-",
            "ages 2-",
            "ages 3-",
            "ages 4-",
            "ages 5-",
            "ages 6-",
            "ages 7-",
            "ages 8-",
            "ages 9-",
            "toddler",
            "preschool",
        ],
        "binding_keywords": ["board book"],
        "ignore": [],
    },
    {
        "category": YOUNG_ADULT,
        "keywords": [
            "teen & young adult",
            "young adult",
            "teen fiction",
            "teenagers",
            "teens",
            "ya fiction",
            "coming of age",
            "coming-of-age",
            "ages 12-",
            "ages 13-",
            "ages 14-",
            "grades 7-",
        ],
        "binding_keywords": [],
        "ignore": [],
    },
    {
        "category": FICTION,
        "keywords": [
            "genre fiction",
            "fiction",
            "novel",
            "fantasy",
            "science fiction",
            "mystery",
            "thriller",
            "romance",
            "horror",
            "suspense",
            "short stories",
        ],
        "binding_keywords": [],
        # "non-fiction" must not read as "fiction"
        "ignore": ["non-fiction", "nonfiction", "non fiction"],
    },
]

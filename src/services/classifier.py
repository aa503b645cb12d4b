"""Keyword-based classification of bookkeeping transactions.

A transaction is either rent, a deductible charge, or explicitly left
unclassified. The keyword table lives in `src/data/classification.json`.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from enum import Enum
from functools import lru_cache
from pathlib import Path

from src.core.exceptions import ConfigurationError
from src.core.logging import get_logger
from src.core.settings import get_settings
from src.domain.models.property import Category, Transaction, TransactionType

log = get_logger(__name__)


class TransactionCategory(str, Enum):
    LOYER = "loyer"
    CHARGE_DEDUCTIBLE = "charge_deductible"
    NON_CLASSE = "non_classe"


# Keyword categories, in matching priority order
KEYWORD_CATEGORIES = (TransactionCategory.LOYER, TransactionCategory.CHARGE_DEDUCTIBLE)


def normalize_keyword(text: str) -> str:
    return " ".join(text.lower().split())


class ClassificationTable:
    """Validated keyword -> category table.

    Raises:
        ConfigurationError: On empty keywords, unknown categories or a
            keyword mapped to two different categories.
    """

    def __init__(self, entries: Iterable[tuple[str, str]]):
        self._keywords: dict[str, TransactionCategory] = {}

        for keyword, category_name in entries:
            try:
                category = TransactionCategory(category_name)
            except ValueError as e:
                raise ConfigurationError(f"Unknown transaction category {category_name!r}") from e
            if category not in KEYWORD_CATEGORIES:
                raise ConfigurationError(f"Category {category.value!r} cannot hold keywords")

            if not isinstance(keyword, str) or not keyword.strip():
                raise ConfigurationError(f"Empty keyword in category {category.value!r}")
            key = normalize_keyword(keyword)

            existing = self._keywords.get(key)
            if existing is not None and existing != category:
                raise ConfigurationError(
                    f"Keyword {key!r} mapped to both {existing.value!r} and {category.value!r}"
                )
            self._keywords[key] = category

        if not self._keywords:
            raise ConfigurationError("Classification table defines no keyword")

    @classmethod
    def from_dict(cls, raw: dict[str, list[str]]) -> ClassificationTable:
        """Build from a `{category: [keywords]}` mapping."""
        if not isinstance(raw, dict):
            raise ConfigurationError("Classification table must be a JSON object")
        entries = []
        for category_name, keywords in raw.items():
            if not isinstance(keywords, list):
                raise ConfigurationError(f"Keywords of {category_name!r} must be a list")
            entries.extend((keyword, category_name) for keyword in keywords)
        return cls(entries)

    def __len__(self) -> int:
        return len(self._keywords)

    def keywords(self, category: TransactionCategory) -> list[str]:
        return sorted(k for k, c in self._keywords.items() if c == category)

    def match(self, *texts: str | None) -> TransactionCategory:
        """Search the keywords in the given texts, rent keywords first."""
        haystack = [normalize_keyword(t) for t in texts if t]
        for category in KEYWORD_CATEGORIES:
            for keyword in self.keywords(category):
                if any(keyword in text for text in haystack):
                    return category
        return TransactionCategory.NON_CLASSE

    def classify(
        self,
        transaction: Transaction,
        transaction_type: TransactionType | None = None,
        category: Category | None = None,
    ) -> TransactionCategory:
        """Classify one transaction.

        A type flagged deductible is a charge. Otherwise the category name,
        type name and description are searched for keywords.
        """
        if transaction_type is not None and transaction_type.deductible:
            return TransactionCategory.CHARGE_DEDUCTIBLE
        return self.match(
            category.name if category else None,
            transaction_type.name if transaction_type else None,
            transaction.description,
        )


@lru_cache(maxsize=4)
def _load_table(path: str) -> ClassificationTable:
    try:
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read classification table from {path}: {e}") from e

    table = ClassificationTable.from_dict(raw)
    log.info("classification_table_loaded", path=path, keywords=len(table))
    return table


def load_classification_table(path: Path | None = None) -> ClassificationTable:
    """Load the validated classification table (cached per path)."""
    source = path or get_settings().classification_path
    return _load_table(str(source))

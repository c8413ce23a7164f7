"""
Label catalogue and the operator's current selection.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import List

from core.errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Category:
    key: str
    name: str
    symbols: List[str]


CATEGORIES = OrderedDict(
    (c.key, c) for c in [
        Category("vocales", "Vocales", ["A", "E", "I", "O", "U"]),
        Category("abecedario", "Abecedario", list("ABCDEFGHIJKLMNOPQRSTUVWXYZ")),
        Category("numeros", "Números", list("0123456789")),
        Category("operaciones", "Operaciones", ["+", "-", "×", "÷", "=", "%"]),
    ]
)


class LabelSelector:
    """Current category and label; read fresh by the capture scheduler."""

    def __init__(self, category: str = "vocales", label: str = ""):
        self._category = None
        self._label = ""
        self.select_category(category)
        if label:
            self.select_label(label)

    @property
    def category(self) -> str:
        return self._category.key

    @property
    def label(self) -> str:
        return self._label

    @property
    def symbols(self) -> List[str]:
        return list(self._category.symbols)

    def select_category(self, key: str):
        """Switch category; the label resets to its first symbol."""
        if key not in CATEGORIES:
            raise ValidationError(f"unknown category: {key}")
        self._category = CATEGORIES[key]
        self._label = self._category.symbols[0]
        logger.debug("Category %s selected, label %s", key, self._label)

    def select_label(self, symbol: str):
        if symbol not in self._category.symbols:
            raise ValidationError(f"{symbol!r} is not in category {self.category}")
        self._label = symbol

    def next_label(self) -> str:
        return self._step(1)

    def previous_label(self) -> str:
        return self._step(-1)

    def next_category(self) -> str:
        keys = list(CATEGORIES)
        self.select_category(keys[(keys.index(self.category) + 1) % len(keys)])
        return self.category

    def _step(self, delta: int) -> str:
        symbols = self._category.symbols
        self._label = symbols[(symbols.index(self._label) + delta) % len(symbols)]
        return self._label

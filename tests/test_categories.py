"""
Tests for Label Selection
==========================
"""

import pytest

from core.errors import ValidationError
from data.categories import CATEGORIES, LabelSelector


class TestCategories:

    def test_catalogue(self):
        assert list(CATEGORIES) == ["vocales", "abecedario", "numeros", "operaciones"]
        assert CATEGORIES["vocales"].symbols == ["A", "E", "I", "O", "U"]
        assert len(CATEGORIES["abecedario"].symbols) == 26
        assert CATEGORIES["operaciones"].symbols == ["+", "-", "×", "÷", "=", "%"]


class TestLabelSelector:

    def test_default_selection(self):
        selector = LabelSelector()
        assert (selector.category, selector.label) == ("vocales", "A")

    def test_initial_label(self):
        selector = LabelSelector("numeros", "7")
        assert (selector.category, selector.label) == ("numeros", "7")

    def test_category_change_resets_label(self):
        selector = LabelSelector("vocales", "U")
        selector.select_category("operaciones")
        assert selector.label == "+"

    def test_unknown_category(self):
        selector = LabelSelector()
        with pytest.raises(ValidationError):
            selector.select_category("emojis")
        assert selector.category == "vocales"

    def test_label_outside_category(self):
        selector = LabelSelector("vocales")
        with pytest.raises(ValidationError):
            selector.select_label("Z")
        assert selector.label == "A"

    def test_label_stepping_wraps(self):
        selector = LabelSelector("vocales", "U")
        assert selector.next_label() == "A"
        assert selector.previous_label() == "U"
        assert selector.previous_label() == "O"

    def test_next_category_wraps(self):
        selector = LabelSelector("operaciones")
        assert selector.next_category() == "vocales"
        assert selector.next_category() == "abecedario"
        assert selector.label == "A"

    def test_symbols_is_a_copy(self):
        selector = LabelSelector()
        selector.symbols.append("Y")
        assert "Y" not in CATEGORIES["vocales"].symbols


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

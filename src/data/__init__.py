"""Label catalogue."""
from .categories import CATEGORIES, Category, LabelSelector

__all__ = ["CATEGORIES", "Category", "LabelSelector"]

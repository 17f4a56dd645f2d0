"""Fuzzy matching over folder and bookmark labels."""

from .fuzzy import fuzzy_score, rank, substring_index

__all__ = ["fuzzy_score", "rank", "substring_index"]

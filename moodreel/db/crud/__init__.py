"""CRUD operations."""

from moodreel.db.crud.movies import match_title, search_titles

__all__ = [
    "match_title",
    "search_titles",
]

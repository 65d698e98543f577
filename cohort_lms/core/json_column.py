"""
Normalized JSON Column

Semi-structured lists (quiz questions, resources, answers) are stored as
JSONB. Older rows may hold the same payload as a JSON-encoded string; this
type decodes those once on load so the rest of the code only sees native
Python structures.
"""

import json
from typing import Any

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import TypeDecorator


def normalize_json(value: Any, default: Any = None) -> Any:
    """
    Coerce a stored JSON payload into a native structure.

    Strings are parsed; unparseable strings and None fall back to ``default``.
    """
    if value is None:
        return default
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return default
        # Double-encoded payloads exist in legacy data
        if isinstance(value, str):
            return normalize_json(value, default)
    return value


class NormalizedJSON(TypeDecorator):
    """JSON column that always round-trips native lists/dicts."""

    impl = JSON
    cache_ok = True

    def __init__(self, default_factory=list, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._default_factory = default_factory

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(JSONB())
        return dialect.type_descriptor(JSON())

    def process_bind_param(self, value, dialect):
        return normalize_json(value, self._default_factory())

    def process_result_value(self, value, dialect):
        return normalize_json(value, self._default_factory())

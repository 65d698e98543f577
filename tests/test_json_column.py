"""
JSON Column Unit Tests

Tests for normalizing legacy string-encoded JSON payloads.
"""

import pytest


class TestNormalizeJson:
    """Tests for normalize_json."""

    @pytest.mark.parametrize(
        "stored, expected",
        [
            ([{"title": "Docs"}], [{"title": "Docs"}]),
            ('[{"title": "Docs"}]', [{"title": "Docs"}]),
            ('"[1, 2]"', [1, 2]),
            (b'{"0": 1}', {"0": 1}),
        ],
    )
    def test_decodes_to_native(self, stored, expected):
        """Verify native, string and double-encoded payloads all load the same."""
        from cohort_lms.core.json_column import normalize_json

        assert normalize_json(stored, []) == expected

    def test_falls_back_to_default(self):
        """Verify None and garbage strings use the default."""
        from cohort_lms.core.json_column import normalize_json

        assert normalize_json(None, []) == []
        assert normalize_json("not json", {}) == {}

"""Unit tests for strict LLM JSON parsing."""

import pytest
from pydantic import TypeAdapter

from src.llm.errors import LlmProcessingError
from src.llm.json_utils import parse_strict, strip_markdown_fences


_INTS = TypeAdapter(list[int])


class TestStripMarkdownFences:
    """Tests for strip_markdown_fences."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("[1, 2]", "[1, 2]"),
            ("  [1]  \n", "[1]"),
            ("```json\n[1]\n```", "[1]"),
            ("```\n[1]\n```", "[1]"),
        ],
    )
    def test_strips(self, raw: str, expected: str) -> None:
        """Should remove one surrounding fence and whitespace."""
        assert strip_markdown_fences(raw) == expected


class TestParseStrict:
    """Tests for parse_strict."""

    def test_valid_document(self) -> None:
        """Should return the validated value."""
        assert parse_strict("```json\n[1, 2, 3]\n```", _INTS) == [1, 2, 3]

    @pytest.mark.parametrize(
        "raw",
        ["", "   ", "[1, 2", "numbers: [1, 2]", '["a"]', "[1] trailing"],
    )
    def test_invalid_raises(self, raw: str) -> None:
        """Should not extract fragments from surrounding prose."""
        with pytest.raises(LlmProcessingError):
            parse_strict(raw, _INTS)

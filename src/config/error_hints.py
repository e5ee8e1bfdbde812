"""Remediation hints printed under scoring.yaml validation errors."""

from typing import Final


# Keyed by Pydantic error type
ERROR_HINTS: Final[dict[str, str]] = {
    "extra_forbidden": "Unknown key. Compare it with the keys of the section it sits in.",
    "enum": "Use one of the listed values.",
    "int_type": "Use a whole number.",
    "int_from_float": "Use a whole number.",
    "float_type": "Use a number.",
    "float_parsing": "Use a number.",
    "string_type": "Use a text value.",
    "list_type": "Use a YAML list.",
    "dict_type": "Use a YAML mapping.",
    "greater_than": "The value is below the allowed minimum.",
    "greater_than_equal": "The value is below the allowed minimum.",
    "less_than": "The value is above the allowed maximum.",
    "less_than_equal": "The value is above the allowed maximum.",
    "string_pattern_mismatch": "Versions are written as MAJOR.MINOR, e.g. '1.0'.",
    "value_error": "Related values disagree. See the message for the expected relation.",
    "yaml_parse_error": "The file is not valid YAML. Check indentation and quoting.",
}

# Keyed by the last segment of the error location
FIELD_HINTS: Final[dict[str, str]] = {
    "strategy": "Must be 'semantic' or 'keyword'.",
    "min_semantic_confidence": "Must be between 0.0 and 1.0.",
    "keyword_score_cap": "Must be below 1.0; only semantic matches may reach full confidence.",
    "relevance": (
        "topic_overlap_cap + recency_cap + share_cap + like_cap + verified_author_bonus "
        "must equal max_score."
    ),
    "verification": "Level boosts must satisfy basic_level <= advanced_level <= expert_level.",
    "overfetch_factor": "Must be a whole number of at least 1.",
    "common_languages": "Must be a list of language names.",
}

_FALLBACK_HINT = "See the scoring configuration documentation for valid values."


def get_error_hint(error_type: str, field_name: str | None = None) -> str:
    """Pick a hint for one validation error.

    A hint for the field wins over a hint for the error type.

    Args:
        error_type: Pydantic error type, or ``yaml_parse_error``.
        field_name: Dotted error location.

    Returns:
        Hint text.
    """
    if field_name:
        field_hint = FIELD_HINTS.get(field_name.rsplit(".", 1)[-1])
        if field_hint:
            return field_hint
    return ERROR_HINTS.get(error_type, _FALLBACK_HINT)


def format_validation_error(
    location: str,
    message: str,
    error_type: str,
    *,
    include_hint: bool = True,
) -> str:
    """Render one validation error for the terminal.

    Args:
        location: Dotted error location, e.g. ``relevance.recency_cap``.
        message: Validation message.
        error_type: Error type used to look up the hint.
        include_hint: Append an indented hint line.

    Returns:
        One or two lines of text.
    """
    line = f"{location}: {message}"
    if not include_hint:
        return line
    return f"{line}\n    Hint: {get_error_hint(error_type, location)}"

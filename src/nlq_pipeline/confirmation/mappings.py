"""
Confirmation Mappings
=====================

Token replacement for caller-confirmed placeholder values.

All placeholders are matched by one alternation, longest first, so a token
that is a prefix or substring of another never wins over it. A placeholder
that starts or ends with a word character only matches on a word boundary,
and replaced text is never scanned again.
"""

import re

from observability.logging_config import get_logger

logger = get_logger(__name__)


def _token_pattern(token: str) -> str:
    pattern = re.escape(token)
    if re.match(r"\w", token):
        pattern = r"(?<!\w)" + pattern
    if re.search(r"\w$", token):
        pattern = pattern + r"(?!\w)"
    return pattern


def apply_confirmed_mappings(sql: str, mappings: dict[str, str] | None) -> str:
    """
    Substitute confirmed values for placeholder tokens in a statement.

    Args:
        sql: Statement produced by translation
        mappings: placeholder -> confirmed literal; entries with an empty
            value are skipped

    Returns:
        The statement with every occurrence of each placeholder replaced
    """
    if not mappings:
        return sql

    replacements: dict[str, str] = {}
    for placeholder, value in mappings.items():
        if not placeholder:
            logger.warning("Skipping mapping with empty placeholder")
            continue
        if not value:
            logger.warning("Skipping empty mapping value", placeholder=placeholder)
            continue
        replacements[placeholder] = str(value)

    if not replacements:
        return sql

    ordered = sorted(replacements, key=len, reverse=True)
    pattern = re.compile("|".join(_token_pattern(token) for token in ordered))

    counts: dict[str, int] = {}

    def _substitute(match: re.Match) -> str:
        token = match.group(0)
        counts[token] = counts.get(token, 0) + 1
        return replacements[token]

    result = pattern.sub(_substitute, sql)

    for placeholder, value in replacements.items():
        logger.info(
            "Applied confirmed mapping",
            placeholder=placeholder,
            value=value,
            occurrences=counts.get(placeholder, 0),
        )
    return result

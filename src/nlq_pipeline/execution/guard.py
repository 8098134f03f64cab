"""
Read-Only Guard
===============

Rejects statements that would modify data before they reach the engine.

Statements are tokenized with sqlparse so that string literals and comments
never trigger a rejection: only SQL code is matched against the patterns.
"""

import re

import sqlparse
from sqlparse import tokens as T

from nlq_pipeline.errors import StatementRejected

FORBIDDEN_PATTERNS = [
    (r"\bDROP\s+(?:TABLE|VIEW|INDEX|DATABASE|SCHEMA)\b", "DROP operation detected"),
    (r"\bTRUNCATE\s+", "TRUNCATE operation detected"),
    (r"\bDELETE\s+FROM\b", "DELETE operation detected"),
    (r"\bUPDATE\s+\w+\s+SET\b", "UPDATE operation detected"),
    (r"\bINSERT\s+(?:OR\s+\w+\s+)?INTO\b", "INSERT operation detected"),
    (r"\bALTER\s+TABLE\b", "ALTER operation detected"),
]

MULTIPLE_STATEMENTS = "Multiple statements detected"


def _code_only(statement) -> str:
    """Statement text with string literals blanked and comments removed."""
    parts = []
    for token in statement.flatten():
        if token.ttype in T.Comment:
            parts.append(" ")
        elif token.ttype in T.String:
            parts.append("''")
        else:
            parts.append(token.value)
    return "".join(parts)


def find_violations(sql: str) -> list[str]:
    statements = [
        statement
        for statement in sqlparse.parse(sql)
        if _code_only(statement).strip().rstrip(";").strip()
    ]

    violations = []
    if len(statements) > 1:
        violations.append(MULTIPLE_STATEMENTS)

    code = "\n".join(_code_only(statement) for statement in statements)
    for pattern, description in FORBIDDEN_PATTERNS:
        if re.search(pattern, code, re.IGNORECASE):
            violations.append(description)
    return violations


def check_read_only(sql: str) -> None:
    """
    Raise if the statement is not a single read-only query.

    Raises:
        StatementRejected: Listing every violation found
    """
    violations = find_violations(sql)
    if violations:
        raise StatementRejected(f"Statement rejected: {'; '.join(violations)}")

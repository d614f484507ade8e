"""
src/tools/guardrails.py — read-only gate for model-written SQL

Two layers:

1) The SELECT gate. The trimmed, lower-cased query must start with "select".
   Anything else (insert, pragma, attach, a CTE, ...) is refused before a
   connection is opened.

2) Strict checks (config.STRICT_SQL). String literals, quoted identifiers and
   comments are masked out, then the remaining text must hold a single
   statement with no write or admin keywords. This catches things like
   "SELECT 1; DROP TABLE teams" that pass the prefix test.

This is still text matching, not a SQL parser. The SQLite connection is also
opened read-only (see database.loader), which is the real backstop.

Usage:
    from tools.guardrails import check_query
    check_query(sql)    # raises NonSelectQuery
"""


import re

from orchestrator.errors import NonSelectQuery


FORBIDDEN_KEYWORDS = (
    "insert",
    "update",
    "delete",
    "drop",
    "alter",
    "create",
    "truncate",
    "pragma",
    "attach",
    "detach",
    "vacuum",
    "reindex",
    "grant",
    "revoke",
)

_MASK_RE = re.compile(
    r"'(?:[^']|'')*'"           # 'string literal'
    r"|\"(?:[^\"]|\"\")*\""     # "quoted identifier"
    r"|`[^`]*`"                 # `quoted identifier`
    r"|--[^\n]*"                # line comment
    r"|/\*.*?(?:\*/|$)",        # block comment, possibly unterminated
    re.S,
)
_FORBIDDEN_RE = re.compile(r"\b(" + "|".join(FORBIDDEN_KEYWORDS) + r")\b")


def is_select(query: str) -> bool:
    """The plain prefix test."""

    return query.strip().lower().startswith("select")


def mask_literals(query: str) -> str:
    """Blank out literals, quoted identifiers and comments so keyword scans only see SQL."""

    return _MASK_RE.sub(" ", query)


def check_query(query: str, *, strict: bool = True) -> None:
    """
    Raise NonSelectQuery unless `query` is acceptable to run.

    Args:
        query: SQL text from the model.
        strict: Also apply the single-statement and keyword checks.
    """

    if not is_select(query):
        raise NonSelectQuery("Only SELECT queries are allowed")

    if not strict:
        return

    body = mask_literals(query).lower().strip().rstrip(";").strip()

    if ";" in body:
        raise NonSelectQuery("Only a single SELECT statement is allowed")

    m = _FORBIDDEN_RE.search(body)
    if m:
        raise NonSelectQuery(f"Forbidden keyword in query: {m.group(1)}")

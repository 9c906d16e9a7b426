"""Helpers for free-text search filters."""

LIKE_ESCAPE = "\\"


def contains_pattern(search: str) -> str:
    """LIKE pattern matching ``search`` anywhere, with its wildcards taken literally.

    Use together with ``ilike(pattern, escape=LIKE_ESCAPE)``.
    """
    escaped = (
        search.strip()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"

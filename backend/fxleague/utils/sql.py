"""SQL utility functions for safe query construction."""


def escape_like_pattern(pattern: str, escape_char: str = "\\") -> str:
    """Escape special characters in SQL LIKE patterns.

    Wildcards (``%``, ``_``) and the escape character itself are escaped so
    user input is matched literally. Pair with ``ESCAPE '\\'`` in the query
    (``column.ilike(f"%{escaped}%", escape="\\")``).

    Examples:
        >>> escape_like_pattern("100%")
        '100\\\\%'
        >>> escape_like_pattern("daily_sprint")
        'daily\\\\_sprint'
    """
    if not pattern:
        return pattern

    # Escape the escape character first to avoid double-escaping
    pattern = pattern.replace(escape_char, escape_char + escape_char)
    pattern = pattern.replace("%", escape_char + "%")
    pattern = pattern.replace("_", escape_char + "_")

    return pattern

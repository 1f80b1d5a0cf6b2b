DEFAULT_LIMIT = 50
MAX_LIMIT = 100


def clamp_pagination(limit: int | None = None, offset: int | None = None) -> tuple[int, int]:
    """Clamp ``limit`` to [1, MAX_LIMIT] and ``offset`` to >= 0."""
    limit = DEFAULT_LIMIT if limit is None else min(max(1, limit), MAX_LIMIT)
    offset = 0 if offset is None else max(0, offset)
    return limit, offset


def pagination_info(total: int, limit: int, offset: int) -> dict:
    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "has_more": offset + limit < total,
    }

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def parse_pagination(args):
    """
    Read `page` and `limit` from query args.

    Non-numeric or out-of-range values fall back to the defaults
    (page 1, limit 10); limit is capped at 100.
    """
    try:
        page = int(args.get('page', DEFAULT_PAGE))
        if page < 1:
            page = DEFAULT_PAGE
    except (ValueError, TypeError):
        page = DEFAULT_PAGE

    try:
        limit = int(args.get('limit', DEFAULT_LIMIT))
        if limit < 1:
            limit = DEFAULT_LIMIT
        if limit > MAX_LIMIT:
            limit = MAX_LIMIT
    except (ValueError, TypeError):
        limit = DEFAULT_LIMIT

    return page, limit


def pagination_meta(page, limit, total):
    total_pages = (total + limit - 1) // limit if total > 0 else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": total_pages,
        "hasNext": page < total_pages,
        "hasPrev": page > 1
    }


def paginate(query, page, limit):
    """
    Apply offset/limit to an ordered query.

    Returns:
        tuple: (items, pagination dict)
    """
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, pagination_meta(page, limit, total)

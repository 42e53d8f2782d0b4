def get_pagination(page, per_page=20, max_per_page=100):
    """Get pagination parameters. Pages are 1-based; bad values fall back to defaults."""
    try:
        page = int(page)
        if page < 1:
            page = 1
    except (TypeError, ValueError):
        page = 1

    try:
        per_page = int(per_page)
    except (TypeError, ValueError):
        per_page = 20
    per_page = max(1, min(per_page, max_per_page))

    return {
        'page': page,
        'per_page': per_page,
    }


def page_to_dict(pagination):
    """Serialize a Flask-SQLAlchemy pagination of entries."""
    return {
        'content': [item.to_dict() for item in pagination.items],
        'page': pagination.page,
        'size': pagination.per_page,
        'totalElements': pagination.total,
        'totalPages': pagination.pages,
    }

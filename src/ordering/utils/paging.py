"""Walk a Protean QuerySet page by page.

QuerySets are capped at the aggregate's default limit (100), so reads that
must see every record page through with ``offset``/``limit``.
"""

PAGE_SIZE = 100


def every_page(query, page_size: int = PAGE_SIZE) -> list:
    """All records matching ``query``. The query should carry a stable ``order_by``."""
    records = []
    offset = 0
    while True:
        page = query.offset(offset).limit(page_size).all().items
        records.extend(page)
        if len(page) < page_size:
            return records
        offset += page_size

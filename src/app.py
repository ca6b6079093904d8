"""Storefront ordering HTTP server.

Cart and order commands are processed synchronously per request. PROTEAN_ENV
selects the domain.toml overlay; under ``production`` the order summary
projection is fed by the Engine in ``server.py`` instead of inline.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000
"""

from ordering.api.application import create_app
from ordering.domain import ordering
from ordering.utils.logging import configure_logging

configure_logging()
ordering.init()

app = create_app()

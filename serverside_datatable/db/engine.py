from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from serverside_datatable import config

# One Engine per database URL for the lifetime of the process.
_ENGINES: dict[str, Engine] = {}


def make_engine(database_url: Optional[str] = None, **options) -> Engine:
    """Create or return the cached SQLAlchemy Engine for `database_url`.

    Falls back to ``DATABASE_URL`` from the environment. `options` are passed
    to `create_engine` the first time a URL is seen.
    """
    database_url = database_url or config.DATABASE_URL
    if not database_url:
        raise RuntimeError("DATABASE_URL not set")
    engine = _ENGINES.get(database_url)
    if engine is None:
        options.setdefault("pool_pre_ping", True)
        engine = create_engine(database_url, **options)
        _ENGINES[database_url] = engine
    return engine

from __future__ import annotations

import ordermind.models  # noqa: F401
from ordermind.core.config import settings
from ordermind.core.db import engine
from ordermind.core.models import Base


def bootstrap() -> None:
    # Local runs use SQLite without migrations; every other database goes through Alembic.
    if settings.environment in {"dev", "test"} and str(settings.database_url).startswith("sqlite"):
        Base.metadata.create_all(engine)

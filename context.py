"""
context.py -- Composition root for DataMap.

AppContext bundles the process-wide resources (database engine, signing
secret, stores, authenticator) into one explicitly constructed object. The
FastAPI app receives it through create_app() and exposes it on
app.state.context; nothing else reaches for module-level singletons. Two
contexts with different databases can live side by side, which is what the
test suite relies on.

Like asgi.py, this is a top-level module because it wires together auth/
and mappings/, which do not import each other.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.engine import Engine

from auth.service import Authenticator
from auth.store import UserStore
from core.config import Settings
from core.database import create_db_engine, create_schema
from mappings.store import DataMappingStore

logger = logging.getLogger("datamap.context")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AppContext:
    settings: Settings
    engine: Engine
    users: UserStore
    mappings: DataMappingStore
    authenticator: Authenticator

    @classmethod
    def from_settings(cls, settings: Settings, clock: Callable[[], datetime] = _utcnow) -> "AppContext":
        """Open the database named by settings, create the schema, and wire the components."""
        engine = create_db_engine(settings.database_url)
        create_schema(engine)
        users = UserStore(engine)
        authenticator = Authenticator(
            users,
            settings.secret_key,
            bcrypt_rounds=settings.bcrypt_rounds,
            token_expire_seconds=settings.token_expire_seconds,
            password_min_length=settings.password_min_length,
            clock=clock,
        )
        logger.info("Context initialized (database=%s)", engine.url.render_as_string(hide_password=True))
        return cls(
            settings=settings,
            engine=engine,
            users=users,
            mappings=DataMappingStore(engine),
            authenticator=authenticator,
        )

    def close(self) -> None:
        self.engine.dispose()

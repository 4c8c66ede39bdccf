"""Database helpers and the transactional store handle."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional, Tuple, TypeVar

from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import load_settings
from .errors import BookingError, ConflictError, InternalError
from .models import Base

T = TypeVar("T")


def _use_immediate_transactions(engine: Engine) -> None:
    # pysqlite defers BEGIN until the first write, which breaks SAVEPOINT and
    # lets two readers race to upgrade their locks. Take the write lock up front.
    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_session_factory(
    db_url: Optional[str] = None,
    *,
    echo: Optional[bool] = None,
    connect_args: Dict[str, object] | None = None,
) -> Tuple[Engine, sessionmaker[Session]]:
    """Return an engine/session factory pair configured for SQLite by default."""

    settings = load_settings()
    db_url = db_url or settings.db_url
    echo = settings.sql_echo if echo is None else echo

    if db_url.startswith("sqlite"):
        final_connect_args = {"check_same_thread": False, "timeout": settings.db_timeout}
        if connect_args:
            final_connect_args.update(connect_args)
    else:
        final_connect_args = connect_args or {}

    if db_url.endswith(":memory:"):
        engine = create_engine(
            db_url,
            echo=echo,
            connect_args=final_connect_args,
            poolclass=StaticPool,
        )
    else:
        engine = create_engine(
            db_url,
            echo=echo,
            connect_args=final_connect_args,
        )
    if engine.dialect.name == "sqlite":
        _use_immediate_transactions(engine)
    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    return engine, session_factory


def init_db(db_url: Optional[str] = None, *, echo: Optional[bool] = None) -> sessionmaker[Session]:
    """Create all tables and return a session factory."""

    engine, session_factory = create_session_factory(db_url, echo=echo)
    Base.metadata.create_all(engine)
    return session_factory


class TransactionalStore:
    """Explicit handle to the backing store, injected into every component.

    ``transaction()`` is the single atomic unit the core works in: everything
    done on the yielded session commits together or not at all.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self.session_factory = session_factory

    @classmethod
    def from_url(
        cls,
        db_url: Optional[str] = None,
        *,
        echo: Optional[bool] = None,
        create_schema: bool = True,
    ) -> "TransactionalStore":
        engine, session_factory = create_session_factory(db_url, echo=echo)
        if create_schema:
            Base.metadata.create_all(engine)
        return cls(session_factory)

    @property
    def engine(self) -> Engine:
        return self.session_factory.kw["bind"]

    @contextmanager
    def transaction(self, session: Optional[Session] = None) -> Iterator[Session]:
        """Provide a transactional scope, or join ``session`` when one is given."""

        if session is not None:
            yield session
            return

        session = self.session_factory()
        try:
            yield session
            session.commit()
        except BookingError:
            session.rollback()
            raise
        except IntegrityError as exc:
            session.rollback()
            logger.warning(f"Transaction rejected by a store constraint: {exc.orig}")
            raise ConflictError("The request conflicts with a concurrent change.") from exc
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Store failure, transaction rolled back")
            raise InternalError("Unexpected store failure.") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def with_transaction(self, fn: Callable[[Session], T]) -> T:
        with self.transaction() as session:
            return fn(session)

    def dispose(self) -> None:
        self.engine.dispose()


__all__ = ["TransactionalStore", "create_session_factory", "init_db"]

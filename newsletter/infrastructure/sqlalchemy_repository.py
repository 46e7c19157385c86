"""SQLAlchemy implementation of the subscription repository.

Each port method maps to exactly one SQL statement run on a pooled connection.
Blocking database calls are offloaded to a thread pool so the event loop only
suspends while a statement is in flight. The trace context of the calling task
is copied into the worker thread so store log events stay correlated.
"""

from __future__ import annotations

import asyncio
import contextvars
import logging
import threading
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import delete, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..domain.exceptions import StoreError
from ..domain.models import Subscription
from ..domain.trace import traced
from ..ports.subscription_repository import SubscriptionRepositoryPort
from .database import newsletters

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine, Row

logger = logging.getLogger(__name__)

T = TypeVar("T")

ENTITY = "newsletters"


class SqlAlchemySubscriptionRepository(SubscriptionRepositoryPort):
    """Repository adapter storing subscriptions in a relational database."""

    def __init__(
        self,
        engine: Engine,
        executor: ThreadPoolExecutor,
        statement_timeout: float = 10.0,
    ):
        """Initialize the repository adapter.

        Args:
            engine: Shared engine whose pool serves every call
            executor: Thread pool running the blocking statements
            statement_timeout: Upper bound in seconds for one call, pool wait included
        """
        self._engine = engine
        self._executor = executor
        self._statement_timeout = statement_timeout

    @traced("repository.list")
    async def list(self) -> list[Subscription]:
        """Retrieve all subscriptions, newest first."""

        def work(conn: Connection) -> list[Subscription]:
            rows = conn.execute(
                select(newsletters.c.email, newsletters.c.active, newsletters.c.created_at).order_by(
                    newsletters.c.id.desc()
                )
            ).all()
            return [self._to_domain(row) for row in rows]

        subscriptions = await self._run("READ", work)
        logger.info(
            "Retrieved subscriptions from database",
            extra={"entity": ENTITY, "crud_operation": "READ", "rows_count": len(subscriptions)},
        )
        return subscriptions

    @traced("repository.add")
    async def add(self, email: str) -> None:
        """Insert an active subscription, doing nothing if the email exists."""

        def work(conn: Connection) -> int:
            statement = self._insert_ignoring_conflict(conn).values(email=email, active=True)
            try:
                with conn.begin_nested() if self._needs_savepoint(conn) else nullcontext():
                    return conn.execute(statement).rowcount
            except IntegrityError:
                # Dialects without ON CONFLICT report the duplicate instead
                return 0

        inserted = await self._run("CREATE", work, email)
        logger.info(
            "Added subscription to database" if inserted else "Subscription already present",
            extra={"entity": ENTITY, "crud_operation": "CREATE", "email": email},
        )

    @traced("repository.delete")
    async def delete(self, email: str) -> None:
        """Remove the subscription for ``email`` if there is one."""

        def work(conn: Connection) -> int:
            return conn.execute(delete(newsletters).where(newsletters.c.email == email)).rowcount

        rows_affected = await self._run("DELETE", work, email)
        logger.info(
            "Deleted subscription from database",
            extra={
                "entity": ENTITY,
                "crud_operation": "DELETE",
                "email": email,
                "rows_affected": rows_affected,
            },
        )

    @traced("repository.get_by_email")
    async def get_by_email(self, email: str) -> Subscription | None:
        """Retrieve the subscription for ``email`` or None."""

        def work(conn: Connection) -> Subscription | None:
            row = conn.execute(
                select(newsletters.c.email, newsletters.c.active, newsletters.c.created_at).where(
                    newsletters.c.email == email
                )
            ).first()
            return self._to_domain(row) if row is not None else None

        subscription = await self._run("READ", work, email)
        logger.debug(
            "Retrieved subscription by email",
            extra={
                "entity": ENTITY,
                "crud_operation": "READ",
                "email": email,
                "found": subscription is not None,
            },
        )
        return subscription

    @traced("repository.set_active")
    async def set_active(self, email: str, active: bool) -> bool:
        """Update the ``active`` flag of an existing row."""

        def work(conn: Connection) -> int:
            return conn.execute(
                update(newsletters).where(newsletters.c.email == email).values(active=active)
            ).rowcount

        rows_affected = await self._run("UPDATE", work, email)
        logger.info(
            "Updated subscription status",
            extra={
                "entity": ENTITY,
                "crud_operation": "UPDATE",
                "email": email,
                "active": active,
                "rows_affected": rows_affected,
            },
        )
        return rows_affected > 0

    async def _run(
        self, crud_operation: str, work: Callable[[Connection], T], email: str | None = None
    ) -> T:
        """Run ``work`` in one transaction on the executor.

        Raises:
            StoreError: On any database failure or when the timeout expires
        """
        logger.debug(
            f"Starting database {crud_operation} operation",
            extra={"entity": ENTITY, "crud_operation": crud_operation, "email": email},
        )
        context = contextvars.copy_context()
        loop = asyncio.get_running_loop()
        call = loop.run_in_executor(
            self._executor, context.run, self._in_transaction, crud_operation, work
        )

        try:
            return await asyncio.wait_for(call, timeout=self._statement_timeout)
        except TimeoutError as e:
            logger.error(
                f"Database {crud_operation} operation timed out after {self._statement_timeout}s",
                extra={"entity": ENTITY, "crud_operation": crud_operation, "email": email},
            )
            raise StoreError(
                "Database operation timed out", operation=crud_operation, email=email, cause=e
            ) from e
        except SQLAlchemyError as e:
            logger.error(
                f"Database {crud_operation} operation failed: {e}",
                extra={
                    "entity": ENTITY,
                    "crud_operation": crud_operation,
                    "email": email,
                    "error": type(e).__name__,
                },
            )
            raise StoreError(
                "Database operation failed", operation=crud_operation, email=email, cause=e
            ) from e

    def _in_transaction(self, crud_operation: str, work: Callable[[Connection], T]) -> T:
        logger.debug(
            f"Running database {crud_operation} transaction on worker thread",
            extra={
                "entity": ENTITY,
                "crud_operation": crud_operation,
                "worker": threading.current_thread().name,
            },
        )
        with self._engine.begin() as conn:
            return work(conn)

    @staticmethod
    def _insert_ignoring_conflict(conn: Connection) -> Any:
        dialect = conn.dialect.name
        if dialect == "postgresql":
            return postgresql.insert(newsletters).on_conflict_do_nothing(index_elements=["email"])
        if dialect == "sqlite":
            return sqlite.insert(newsletters).on_conflict_do_nothing(index_elements=["email"])
        return insert(newsletters)

    @staticmethod
    def _needs_savepoint(conn: Connection) -> bool:
        return conn.dialect.name not in ("postgresql", "sqlite")

    @staticmethod
    def _to_domain(row: Row[Any]) -> Subscription:
        return Subscription(email=row.email, active=bool(row.active), created_at=row.created_at)

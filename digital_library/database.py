"""
Database connection and session management for the catalog API.

The ``DatabaseManager`` owns the async engine and its bounded connection pool.
It is created once per process, initialized at startup, disposed at shutdown
and handed to request handlers through ``app.state`` rather than a module
global. ``TrackedTransaction`` wraps the single connection a transactional
operation holds and reports it when it is held past a time budget.
"""

import asyncio
import time
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import Request
from loguru import logger
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import DisconnectionError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.sql import text

from digital_library.config import (DEBUG, MAX_OVERFLOW, POOL_RECYCLE,
                                    POOL_SIZE, POOL_TIMEOUT,
                                    SLOW_TRANSACTION_SECONDS, SQLALCHEMY_DATABASE_URL,
                                    SSL_MODE, STATEMENT_TIMEOUT_MS)
from digital_library import models  # noqa: F401  (registers tables on Base.metadata)
from digital_library.schemas.base import Base
from digital_library.utils.exceptions import LibraryError, TransactionFailure


class DatabaseStatus(Enum):
    """Database connection status enumeration"""
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    NOT_INITIALIZED = "not_initialized"
    ERROR = "error"


class DatabaseHealthChecker:
    """
    Database connection health monitoring with exponential backoff.
    """

    def __init__(
        self,
        check_interval: int = 30,
        max_consecutive_failures: int = 3,
        backoff_multiplier: float = 2.0,
        max_backoff: int = 300,
    ):
        self.last_check = 0.0
        self.is_healthy = True
        self.consecutive_failures = 0
        self.check_interval = check_interval
        self.max_consecutive_failures = max_consecutive_failures
        self.backoff_multiplier = backoff_multiplier
        self.max_backoff = max_backoff
        self.last_error: Optional[str] = None
        self.last_successful_check = time.time()

    def _calculate_backoff_interval(self) -> float:
        if self.consecutive_failures <= 1:
            return self.check_interval
        backoff = self.check_interval * (self.backoff_multiplier ** (self.consecutive_failures - 1))
        return min(backoff, self.max_backoff)

    async def check_health(self, engine: AsyncEngine, force: bool = False) -> bool:
        current_time = time.time()
        required_interval = self._calculate_backoff_interval()

        if not force and current_time - self.last_check < required_interval:
            return self.is_healthy

        try:
            async with engine.connect() as conn:
                result = await conn.execute(text("SELECT 1"))
                if result.scalar() != 1:
                    raise RuntimeError("Health check query returned unexpected value")

            self._reset_failure_tracking(current_time)
            return True
        except Exception as e:
            self._handle_failure(e, current_time)
            return False

    def _reset_failure_tracking(self, current_time: float) -> None:
        if not self.is_healthy or self.consecutive_failures > 0:
            logger.info("Database connection restored after {} failures", self.consecutive_failures)
        self.is_healthy = True
        self.consecutive_failures = 0
        self.last_check = current_time
        self.last_successful_check = current_time
        self.last_error = None

    def _handle_failure(self, error: Exception, current_time: float) -> None:
        self.consecutive_failures += 1
        self.is_healthy = False
        self.last_check = current_time
        self.last_error = str(error)

        logger.warning("Database health check failed (attempt {}): {}", self.consecutive_failures, error)

        if self.consecutive_failures >= self.max_consecutive_failures:
            logger.error(
                "Database connection appears down after {} consecutive failures. "
                "Last success: {:.1f}s ago",
                self.consecutive_failures,
                current_time - self.last_successful_check,
            )

    def get_metrics(self) -> Dict[str, Any]:
        return {
            "is_healthy": self.is_healthy,
            "consecutive_failures": self.consecutive_failures,
            "last_check": self.last_check,
            "last_successful_check": self.last_successful_check,
            "last_error": self.last_error,
        }


class TrackedTransaction:
    """
    A session pinned to one connection for the lifetime of one transaction.

    Records when the connection was acquired and the last statement sent on it.
    If the transaction is still open after ``budget_seconds`` a warning is
    logged, since it is holding row locks other writers are waiting on.
    """

    def __init__(self, session: AsyncSession, label: str, budget_seconds: float):
        self.session = session
        self.label = label
        self.budget_seconds = budget_seconds
        self.acquired_at: Optional[float] = None
        self.last_statement: Any = None
        self.flagged = False
        self._timer: Optional[asyncio.TimerHandle] = None

    def start(self) -> None:
        self.acquired_at = time.monotonic()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.budget_seconds, self._report_slow)

    @property
    def held_seconds(self) -> float:
        if self.acquired_at is None:
            return 0.0
        return time.monotonic() - self.acquired_at

    def _describe_last_statement(self) -> str:
        if self.last_statement is None:
            return "<none>"
        return " ".join(str(self.last_statement).split())

    def _report_slow(self) -> None:
        self.flagged = True
        logger.warning(
            "Transaction '{}' has been checked out for more than {:.1f}s; last statement: {}",
            self.label,
            self.budget_seconds,
            self._describe_last_statement(),
        )

    async def execute(self, statement, params: Optional[Dict[str, Any]] = None):
        self.last_statement = statement
        return await self.session.execute(statement, params)

    async def scalar(self, statement, params: Optional[Dict[str, Any]] = None):
        self.last_statement = statement
        return await self.session.scalar(statement, params)

    def release(self) -> float:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        held = self.held_seconds
        if held > self.budget_seconds:
            self.flagged = True
            logger.warning(
                "Transaction '{}' released after {:.2f}s (budget {:.1f}s)",
                self.label,
                held,
                self.budget_seconds,
            )
        else:
            logger.debug("Transaction '{}' released after {:.3f}s", self.label, held)
        return held


class DatabaseManager:
    """Database connection manager with explicit startup/shutdown lifecycle."""

    def __init__(
        self,
        url: str = SQLALCHEMY_DATABASE_URL,
        echo: bool = DEBUG,
        slow_transaction_seconds: float = SLOW_TRANSACTION_SECONDS,
    ):
        self.url = url
        self.echo = echo
        self.slow_transaction_seconds = slow_transaction_seconds
        self.backend = make_url(url).get_backend_name()
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._health_checker = DatabaseHealthChecker()
        self._init_lock = asyncio.Lock()

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not initialized")
        return self._engine

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    def _get_connect_args(self) -> Dict[str, Any]:
        if self.backend != "postgresql":
            return {}
        ssl_configs = {
            "require": {"ssl": "require"},
            "prefer": {"ssl": "prefer"},
            "disable": {"ssl": False},
            "verify-ca": {"ssl": "verify-full"},
            "verify-full": {"ssl": "verify-full"},
        }
        connect_args = dict(ssl_configs.get(SSL_MODE, {"ssl": "prefer"}))
        connect_args["server_settings"] = {"statement_timeout": str(STATEMENT_TIMEOUT_MS)}
        return connect_args

    def _build_engine(self) -> AsyncEngine:
        kwargs: Dict[str, Any] = {
            "echo": self.echo,
            "pool_pre_ping": True,
            "connect_args": self._get_connect_args(),
        }
        if self.backend == "postgresql":
            kwargs.update(
                pool_size=POOL_SIZE,
                max_overflow=MAX_OVERFLOW,
                pool_timeout=POOL_TIMEOUT,
                pool_recycle=POOL_RECYCLE,
            )
        engine = create_async_engine(self.url, **kwargs)
        if self.backend == "sqlite":
            _serialize_sqlite_writers(engine)
        return engine

    async def initialize(self, create_tables: bool = True) -> None:
        async with self._init_lock:
            if self._engine:
                logger.debug("Database already initialized, skipping")
                return

            logger.info("Initializing database connection ({})", self.backend)
            try:
                self._engine = self._build_engine()
                self._session_factory = sessionmaker(
                    bind=self._engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                )
                if create_tables:
                    async with self._engine.begin() as conn:
                        await conn.run_sync(Base.metadata.create_all)
                if not await self._health_checker.check_health(self._engine, force=True):
                    raise RuntimeError("Initial database health check failed")
                logger.success("Database initialized successfully")
            except Exception:
                await self.close()
                raise

    async def close(self) -> None:
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database connection pool closed")

    @asynccontextmanager
    async def session_scope(self) -> AsyncGenerator[AsyncSession, None]:
        """Session for one request; rolled back on any error."""
        if self._session_factory is None:
            raise RuntimeError("Database is not initialized")
        session: AsyncSession = self._session_factory()
        try:
            yield session
            await session.commit()
        except LibraryError:
            await session.rollback()
            raise
        except SQLAlchemyError as e:
            await session.rollback()
            if isinstance(e, DisconnectionError):
                self._health_checker.is_healthy = False
            logger.error("Database error: {}", e)
            raise TransactionFailure("Database operation failed") from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    @asynccontextmanager
    async def transaction(self, label: str = "transaction") -> AsyncGenerator[TrackedTransaction, None]:
        """
        Run a block on one dedicated connection inside one transaction.

        Commits when the block exits normally and rolls back on any exception.
        Storage errors surface as ``TransactionFailure``; domain errors raised
        inside the block propagate unchanged after the rollback.
        """
        if self._session_factory is None:
            raise RuntimeError("Database is not initialized")
        session: AsyncSession = self._session_factory()
        tracked = TrackedTransaction(session, label, self.slow_transaction_seconds)
        tracked.start()
        try:
            async with session.begin():
                yield tracked
        except SQLAlchemyError as e:
            logger.error(
                "Transaction '{}' rolled back: {} (last statement: {})",
                label,
                e,
                tracked._describe_last_statement(),
            )
            raise TransactionFailure() from e
        finally:
            tracked.release()
            await session.close()

    async def verify_health(self) -> bool:
        if not self._engine:
            return False
        return await self._health_checker.check_health(self._engine, force=True)

    def get_stats(self) -> Dict[str, Any]:
        if not self._engine:
            return {"status": DatabaseStatus.NOT_INITIALIZED.value}
        try:
            pool = self._engine.pool
            metrics = self._health_checker.get_metrics()
            return {
                "status": DatabaseStatus.HEALTHY.value if metrics["is_healthy"] else DatabaseStatus.UNHEALTHY.value,
                "backend": self.backend,
                "health_metrics": metrics,
                "pool_stats": {
                    "size": pool.size() if hasattr(pool, "size") else None,
                    "checked_out": pool.checkedout() if hasattr(pool, "checkedout") else None,
                    "overflow": pool.overflow() if hasattr(pool, "overflow") else None,
                },
            }
        except Exception as e:
            logger.error("Failed to get database stats: {}", e)
            return {"status": DatabaseStatus.ERROR.value, "error": str(e)}


def _serialize_sqlite_writers(engine: AsyncEngine) -> None:
    """Open SQLite transactions with BEGIN IMMEDIATE so concurrent writers queue up."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


# --- FastAPI dependencies ---

def get_db_manager(request: Request) -> DatabaseManager:
    return request.app.state.db


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    manager: DatabaseManager = request.app.state.db
    async with manager.session_scope() as session:
        yield session


__all__ = [
    "DatabaseManager",
    "DatabaseStatus",
    "TrackedTransaction",
    "get_db",
    "get_db_manager",
]

"""Async PostgreSQL connection pool with an explicit lifecycle.

The pool is an owned resource object: main.py creates it, opens it in the
server lifespan and injects it into the executor. Nothing reaches it through
module globals.
"""
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import AsyncGenerator, Optional

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from sqlgate.config import GatewayConfig, build_conninfo
from sqlgate.utils.errors import PoolNotReadyError

logger = logging.getLogger(__name__)


class PoolState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    CLOSED = "closed"


@dataclass
class PoolStats:
    """Borrow bookkeeping. acquired == released whenever no call is in flight."""

    acquired: int = 0
    released: int = 0

    @property
    def in_use(self) -> int:
        return self.acquired - self.released


class GatewayPool:
    """Manages the async connection pool used by the query executor.

    - One connection per logical call, returned on every exit path
    - Acquisition bounded by the configured acquire timeout
    - Health check before checkout, recycling of long-lived connections
    """

    def __init__(self, cfg: GatewayConfig):
        self._config = cfg
        self._pool: Optional[AsyncConnectionPool] = None
        self._state = PoolState.UNINITIALIZED
        self.stats = PoolStats()

    @property
    def state(self) -> PoolState:
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is PoolState.READY

    async def initialize(self, conninfo: str = None):
        """Open the pool and wait until its minimum connections are up.

        On failure the pool goes back to UNINITIALIZED and the error is
        re-raised to the caller.
        """
        if self._state is PoolState.READY:
            return
        if self._state is PoolState.CLOSED:
            raise PoolNotReadyError("Pool has been closed")

        self._state = PoolState.INITIALIZING
        pool = AsyncConnectionPool(
            conninfo=conninfo or build_conninfo(self._config),
            min_size=self._config.pool_min_size,
            max_size=self._config.pool_max_size,
            open=False,
            kwargs={"row_factory": dict_row, "autocommit": True},
            check=AsyncConnectionPool.check_connection,
            timeout=self._config.acquire_timeout,
            max_lifetime=self._config.pool_max_lifetime,
            max_idle=self._config.pool_max_idle,
            name=self._config.server_name,
        )
        try:
            await pool.open(wait=True, timeout=self._config.acquire_timeout)
        except Exception:
            self._state = PoolState.UNINITIALIZED
            try:
                await pool.close()
            except Exception as close_error:
                logger.warning(
                    f"Closing pool after failed open also failed: {close_error}"
                )
            raise

        self._pool = pool
        self._state = PoolState.READY
        logger.info(
            f"Connection pool ready (min={self._config.pool_min_size}, "
            f"max={self._config.pool_max_size})"
        )

    async def close(self):
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Connection pool closed")
        self._state = PoolState.CLOSED

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """Borrow one connection for the duration of the block.

        Raises PoolNotReadyError without touching the database when the pool
        is not READY, and psycopg_pool.PoolTimeout when no connection frees
        up within the acquire timeout.
        """
        if self._state is not PoolState.READY or self._pool is None:
            raise PoolNotReadyError(f"Pool is {self._state.value}")

        async with self._pool.connection(
            timeout=self._config.acquire_timeout
        ) as conn:
            self.stats.acquired += 1
            try:
                yield conn
            finally:
                self.stats.released += 1

"""Centralized error classification.

Every failure that reaches a component boundary is reduced to an ErrorInfo:
a kind from the gateway taxonomy, a caller-facing message and, for database
errors, the driver's SQLSTATE code.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import psycopg
from psycopg_pool import PoolTimeout


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CONNECTIVITY = "connectivity"
    EXECUTION = "execution"


class PoolNotReadyError(ConnectionError):
    """Raised when a connection is requested from a pool that is not ready."""


@dataclass(frozen=True)
class ErrorInfo:
    kind: ErrorKind
    message: str
    code: Optional[str] = None


def _driver_message(e: psycopg.Error) -> str:
    diag = getattr(e, "diag", None)
    primary = getattr(diag, "message_primary", None) if diag else None
    return (primary or str(e)).strip()


def _is_connection_error(e: psycopg.Error) -> bool:
    """Connection-class failures carry no SQLSTATE or a class 08 SQLSTATE."""
    if not isinstance(e, (psycopg.OperationalError, psycopg.InterfaceError)):
        return False
    return not e.sqlstate or e.sqlstate.startswith("08")


def describe_error(e: BaseException) -> ErrorInfo:
    """Map an exception to the gateway error taxonomy.

    Connectivity:
    - pool not ready, acquisition timeout
    - connection lost or refused mid-call
    Execution:
    - anything the database itself rejected, reported verbatim with its code
    """
    if isinstance(e, PoolNotReadyError):
        return ErrorInfo(ErrorKind.CONNECTIVITY, "Database is not connected")

    if isinstance(e, PoolTimeout):
        return ErrorInfo(
            ErrorKind.CONNECTIVITY,
            "Timed out waiting for a database connection. "
            "The pool may be saturated or the database unreachable.",
        )

    if isinstance(e, psycopg.Error):
        if _is_connection_error(e):
            return ErrorInfo(
                ErrorKind.CONNECTIVITY,
                f"Database connection error: {_driver_message(e)}",
                e.sqlstate,
            )
        return ErrorInfo(ErrorKind.EXECUTION, _driver_message(e), e.sqlstate)

    if isinstance(e, (TimeoutError, OSError)):
        return ErrorInfo(
            ErrorKind.CONNECTIVITY,
            f"Database connection error: {type(e).__name__}: {e}",
        )

    return ErrorInfo(ErrorKind.EXECUTION, f"{type(e).__name__}: {e}")

"""Statement execution against the gateway pool.

The executor runs statements that already passed the safety policy. Every
outcome, including driver faults and connectivity loss, comes back as an
ExecutionResult; nothing is raised to the caller.
"""
import re
import time
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from sqlgate.db import GatewayPool
from sqlgate.safety.sql_guard import OperationKind
from sqlgate.utils.errors import ErrorKind, describe_error

logger = logging.getLogger(__name__)

LIST_TABLES_SQL = (
    "SELECT table_name FROM information_schema.tables "
    "WHERE table_schema = current_schema() AND table_type = 'BASE TABLE' "
    "ORDER BY table_name"
)

DESCRIBE_TABLE_SQL = (
    "SELECT column_name, data_type, is_nullable, column_default, "
    "character_maximum_length "
    "FROM information_schema.columns "
    "WHERE table_schema = current_schema() AND table_name = %s "
    "ORDER BY ordinal_position"
)

# Literals and comments are matched before '?' so a '?' inside them is left
# alone. E-strings precede plain strings because they allow \' escapes.
_PLACEHOLDER_SCAN = re.compile(
    "|".join(
        (
            r"\$([A-Za-z_]\w*|)\$.*?\$\1\$",
            r"(?<!\w)[eE]'(?:[^'\\]|\\.|'')*'",
            r"'(?:[^']|'')*'",
            r'"(?:[^"]|"")*"',
            r"--[^\n]*",
            r"/\*.*?\*/",
            r"\?",
        )
    ),
    re.DOTALL,
)


@dataclass
class FieldDescriptor:
    name: str
    type: str
    length: Optional[int] = None


@dataclass
class ExecutionResult:
    """Normalized envelope for one statement execution."""

    success: bool
    operation: OperationKind
    rows: list[dict[str, Any]] = field(default_factory=list)
    affected_rows: int = 0
    last_insert_id: Optional[int] = None
    fields: list[FieldDescriptor] = field(default_factory=list)
    elapsed_ms: int = 0
    error_message: Optional[str] = None
    error_code: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @classmethod
    def failure(
        cls, operation: OperationKind, exc: BaseException, elapsed_ms: int = 0
    ) -> "ExecutionResult":
        info = describe_error(exc)
        return cls(
            success=False,
            operation=operation,
            elapsed_ms=elapsed_ms,
            error_message=info.message,
            error_code=info.code,
            error_kind=info.kind,
        )


@dataclass
class TableInfo:
    name: str
    columns: list[dict[str, Any]] = field(default_factory=list)


@dataclass
class IntrospectionResult:
    success: bool
    tables: list[TableInfo] = field(default_factory=list)
    error_message: Optional[str] = None
    error_code: Optional[str] = None


def bind_placeholders(sql: str) -> str:
    """Translate '?' positional placeholders into psycopg's '%s' style.

    Quoted, dollar-quoted and escape-string literals and comments are
    skipped. Statements without '?' outside them are returned unchanged so
    native '%s' placeholders keep working (and jsonb '?' operators can be
    used alongside '%s').
    """
    parts: list[Optional[str]] = []
    found = False
    last = 0
    for match in _PLACEHOLDER_SCAN.finditer(sql):
        parts.append(sql[last:match.start()])
        if match.group(0) == "?":
            found = True
            parts.append(None)
        else:
            parts.append(match.group(0))
        last = match.end()
    parts.append(sql[last:])
    if not found:
        return sql
    # Literal '%' must be doubled once the driver parses placeholders.
    return "".join(
        "%s" if part is None else part.replace("%", "%%") for part in parts
    )


def _type_name(conn: Any, type_code: Any) -> str:
    try:
        info = conn.adapters.types.get(type_code)
    except (AttributeError, TypeError):
        info = None
    return info.name if info is not None else str(type_code)


def _describe_fields(conn: Any, description: Sequence[Any]) -> list[FieldDescriptor]:
    return [
        FieldDescriptor(
            name=col.name,
            type=_type_name(conn, col.type_code),
            length=col.internal_size,
        )
        for col in description
    ]


def _generated_id(rows: list[dict[str, Any]]) -> Optional[int]:
    """Generated ids come back through RETURNING; take the first column."""
    if not rows:
        return None
    first = next(iter(rows[0].values()), None)
    if isinstance(first, int) and not isinstance(first, bool):
        return first
    return None


class QueryExecutor:
    """Runs admitted statements through an injected GatewayPool.

    Each call borrows exactly one connection, issues exactly one statement on
    it and hands it back before returning. No retries.
    """

    def __init__(self, pool: GatewayPool):
        self._pool = pool

    @property
    def pool(self) -> GatewayPool:
        return self._pool

    async def run(
        self,
        sql: str,
        params: Optional[Sequence[Any]] = None,
        operation: OperationKind = OperationKind.UNKNOWN,
    ) -> ExecutionResult:
        """Execute one statement with positional parameters."""
        if not self._pool.is_ready:
            logger.warning(
                f"Execution refused: pool is {self._pool.state.value}"
            )
            return ExecutionResult(
                success=False,
                operation=operation,
                error_message="Database is not connected",
                error_kind=ErrorKind.CONNECTIVITY,
            )

        if params:
            query, bound = bind_placeholders(sql), list(params)
        else:
            query, bound = sql, None

        started = None
        try:
            async with self._pool.connection() as conn:
                async with conn.cursor() as cur:
                    started = time.perf_counter()
                    await cur.execute(query, bound, prepare=True)
                    rows: list[dict[str, Any]] = []
                    fields: list[FieldDescriptor] = []
                    if cur.description:
                        fields = _describe_fields(conn, cur.description)
                        rows = [dict(row) for row in await cur.fetchall()]
                    elapsed_ms = int((time.perf_counter() - started) * 1000)
                    rowcount = max(cur.rowcount or 0, 0)
        except Exception as e:
            elapsed_ms = 0
            if started is not None:
                elapsed_ms = int((time.perf_counter() - started) * 1000)
            result = ExecutionResult.failure(operation, e, elapsed_ms)
            logger.warning(
                f"{operation.value.upper()} failed after {elapsed_ms}ms "
                f"[{result.error_kind.value}] {result.error_message}"
            )
            return result

        return ExecutionResult(
            success=True,
            operation=operation,
            rows=rows,
            affected_rows=0 if operation is OperationKind.SELECT else rowcount,
            last_insert_id=(
                _generated_id(rows) if operation is OperationKind.INSERT else None
            ),
            fields=fields,
            elapsed_ms=elapsed_ms,
        )

    async def list_tables(self) -> IntrospectionResult:
        """List tables of the current schema with their columns.

        A failed table listing fails the whole call. A table whose columns
        cannot be described is left out of the result.
        """
        listing = await self.run(LIST_TABLES_SQL, operation=OperationKind.SELECT)
        if not listing.success:
            return IntrospectionResult(
                success=False,
                error_message=listing.error_message,
                error_code=listing.error_code,
            )

        tables: list[TableInfo] = []
        for row in listing.rows:
            name = next(iter(row.values()))
            described = await self.run(
                DESCRIBE_TABLE_SQL, (name,), operation=OperationKind.SELECT
            )
            if not described.success:
                logger.warning(
                    f"Skipping table {name!r}: {described.error_message}"
                )
                continue
            tables.append(TableInfo(name=name, columns=described.rows))

        return IntrospectionResult(success=True, tables=tables)

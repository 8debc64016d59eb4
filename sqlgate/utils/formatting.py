"""Response formatting helpers."""
import json
from enum import Enum
from typing import Any

from sqlgate.db import PoolState


class ResponseFormat(str, Enum):
    MARKDOWN = "markdown"
    JSON = "json"


def format_rows(
    rows: list[dict[str, Any]], fmt: ResponseFormat = ResponseFormat.JSON
) -> str:
    if fmt == ResponseFormat.JSON:
        return json.dumps(rows, indent=2, default=str, ensure_ascii=False)
    if not rows:
        return "_No results returned._"
    cols = list(rows[0].keys())
    lines = ["| " + " | ".join(cols) + " |"]
    lines.append("| " + " | ".join(["---"] * len(cols)) + " |")
    for row in rows[:50]:
        vals = [str(row.get(c, "")) for c in cols]
        lines.append("| " + " | ".join(vals) + " |")
    if len(rows) > 50:
        lines.append(f"\n_...and {len(rows) - 50} more rows (use LIMIT to control)_")
    return "\n".join(lines)


def format_execution_result(result, fmt: ResponseFormat = ResponseFormat.JSON) -> str:
    """Render an ExecutionResult as the caller-facing summary."""
    if not result.success:
        text = f"✗ SQL execution failed: {result.error_message}"
        if result.error_code:
            text += f" (code: {result.error_code})"
        return text

    lines = [
        "✓ SQL executed successfully",
        f"Operation: {result.operation.value.upper()}",
        f"Execution time: {result.elapsed_ms}ms",
        f"Affected rows: {result.affected_rows}",
    ]
    if result.last_insert_id is not None:
        lines.append(f"Insert ID: {result.last_insert_id}")
    if result.rows:
        lines.append(f"Rows returned: {result.row_count}")
        lines.append("")
        lines.append("Results:")
        lines.append(format_rows(result.rows, fmt))
    return "\n".join(lines)


def format_rejection(reason: str, params: bool = False) -> str:
    prefix = "Parameter validation failed" if params else "SQL validation failed"
    return f"{prefix}: {reason}"


def format_tables_info(result, fmt: ResponseFormat = ResponseFormat.MARKDOWN) -> str:
    """Render an IntrospectionResult."""
    if not result.success:
        text = f"Failed to get table info: {result.error_message}"
        if result.error_code:
            text += f" (code: {result.error_code})"
        return text

    if fmt == ResponseFormat.JSON:
        return json.dumps(
            [{"name": t.name, "columns": t.columns} for t in result.tables],
            indent=2,
            default=str,
        )
    if not result.tables:
        return "_No tables found._"
    lines = ["## Tables\n"]
    for table in result.tables:
        lines.append(f"### {table.name}")
        for c in table.columns:
            nullable = "NOT NULL" if c.get("is_nullable") == "NO" else "NULL"
            col = f"- {c['column_name']} ({c['data_type']}) {nullable}"
            if c.get("column_default") is not None:
                col += f" DEFAULT {c['column_default']}"
            lines.append(col)
        lines.append("")
    return "\n".join(lines).rstrip()


def format_connection_status(state: PoolState) -> str:
    if state is PoolState.READY:
        return "Database connection status: connected"
    return f"Database connection status: not connected ({state.value})"

"""Validate-then-execute pipeline behind the MCP tools.

Every operation returns a GatewayResponse: renderable text plus an error
flag. Rejected statements never reach the pool.
"""
import logging
from dataclasses import dataclass
from typing import Any

from sqlgate.executor import QueryExecutor
from sqlgate.safety.sql_guard import SQLValidator
from sqlgate.utils.errors import describe_error
from sqlgate.utils.formatting import (
    ResponseFormat,
    format_connection_status,
    format_execution_result,
    format_rejection,
    format_tables_info,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GatewayResponse:
    text: str
    is_error: bool = False


class SQLGateway:
    def __init__(self, validator: SQLValidator, executor: QueryExecutor):
        self._validator = validator
        self._executor = executor

    async def execute_statement(
        self,
        sql: Any,
        params: Any = None,
        fmt: ResponseFormat = ResponseFormat.JSON,
    ) -> GatewayResponse:
        """Screen a statement and its parameters, then run it."""
        if params is None:
            params = []

        verdict = self._validator.validate(sql)
        if not verdict.admissible:
            logger.info(f"Statement rejected: {verdict.reason}")
            return GatewayResponse(format_rejection(verdict.reason), is_error=True)

        params_verdict = self._validator.validate_params(params)
        if not params_verdict.admissible:
            logger.info(f"Parameters rejected: {params_verdict.reason}")
            return GatewayResponse(
                format_rejection(params_verdict.reason, params=True),
                is_error=True,
            )

        try:
            result = await self._executor.run(sql, params, verdict.operation)
        except Exception as e:
            logger.exception("Unexpected fault while executing statement")
            info = describe_error(e)
            return GatewayResponse(
                f"✗ SQL execution failed: {info.message}", is_error=True
            )
        return GatewayResponse(
            format_execution_result(result, fmt), is_error=not result.success
        )

    async def list_tables(
        self, fmt: ResponseFormat = ResponseFormat.MARKDOWN
    ) -> GatewayResponse:
        try:
            result = await self._executor.list_tables()
        except Exception as e:
            logger.exception("Unexpected fault while listing tables")
            info = describe_error(e)
            return GatewayResponse(
                f"Failed to get table info: {info.message}", is_error=True
            )
        return GatewayResponse(
            format_tables_info(result, fmt), is_error=not result.success
        )

    def connection_status(self) -> GatewayResponse:
        """Report the pool lifecycle state. Never contacts the database."""
        return GatewayResponse(format_connection_status(self._executor.pool.state))

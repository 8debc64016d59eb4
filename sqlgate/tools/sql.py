"""SQL execution tool guarded by the statement safety policy."""
from typing import Optional, Union

from pydantic import BaseModel, Field, ConfigDict
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from sqlgate.gateway import SQLGateway
from sqlgate.utils.formatting import ResponseFormat


class ExecuteSQLInput(BaseModel):
    model_config = ConfigDict(extra="forbid")
    sql: str = Field(
        ...,
        description="SQL statement to execute (SELECT, INSERT, UPDATE or DELETE)",
        max_length=50000,
    )
    params: Optional[list[Union[bool, int, float, str, None]]] = Field(
        default=None,
        description="Positional parameters bound to '?' placeholders (optional)",
    )
    response_format: ResponseFormat = Field(default=ResponseFormat.JSON)


def register_sql_tools(mcp: FastMCP, gateway: SQLGateway):

    @mcp.tool(
        name="execute_sql",
        annotations={
            "title": "Execute SQL Statement",
            "readOnlyHint": False,
            "destructiveHint": True,
            "idempotentHint": False,
            "openWorldHint": False,
        },
    )
    async def execute_sql(params: ExecuteSQLInput) -> str:
        """Execute one SQL statement against the connected database.

        Supports SELECT, INSERT, UPDATE and DELETE. DDL, privilege commands,
        stored procedures and multiple statements are rejected before the
        database is contacted. Use '?' placeholders with params for values.
        """
        response = await gateway.execute_statement(
            params.sql, params.params, fmt=params.response_format
        )
        if response.is_error:
            raise ToolError(response.text)
        return response.text

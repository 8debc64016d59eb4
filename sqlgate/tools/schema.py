"""Schema discovery and connection status tools."""
from pydantic import BaseModel, Field, ConfigDict
from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from sqlgate.gateway import SQLGateway
from sqlgate.utils.formatting import ResponseFormat


class TablesInfoInput(BaseModel):
    model_config = ConfigDict(extra="forbid")
    response_format: ResponseFormat = Field(default=ResponseFormat.MARKDOWN)


def register_schema_tools(mcp: FastMCP, gateway: SQLGateway):

    @mcp.tool(
        name="get_tables_info",
        annotations={
            "title": "Get Tables Info",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": False,
        },
    )
    async def get_tables_info(params: TablesInfoInput) -> str:
        """List the tables of the current schema with their columns,
        data types, nullability and defaults."""
        response = await gateway.list_tables(fmt=params.response_format)
        if response.is_error:
            raise ToolError(response.text)
        return response.text

    @mcp.tool(
        name="get_connection_status",
        annotations={
            "title": "Get Connection Status",
            "readOnlyHint": True,
            "destructiveHint": False,
            "idempotentHint": True,
            "openWorldHint": False,
        },
    )
    async def get_connection_status() -> str:
        """Report whether the database connection pool is ready."""
        return gateway.connection_status().text

"""sqlgate MCP server: main entry point.

Three tools over one guarded connection pool: execute_sql, get_tables_info
and get_connection_status.
"""
import logging
from contextlib import asynccontextmanager

from mcp.server.fastmcp import FastMCP

from sqlgate.config import config
from sqlgate.db import GatewayPool
from sqlgate.executor import QueryExecutor
from sqlgate.gateway import SQLGateway
from sqlgate.safety.sql_guard import SQLValidator
from sqlgate.tools.sql import register_sql_tools
from sqlgate.tools.schema import register_schema_tools

logging.basicConfig(level=getattr(logging, config.log_level, logging.INFO))
logger = logging.getLogger(__name__)

pool = GatewayPool(config)
gateway = SQLGateway(SQLValidator(), QueryExecutor(pool))


@asynccontextmanager
async def app_lifespan(server: FastMCP):
    """Open the pool on startup and close it on shutdown."""
    if config.is_configured:
        try:
            await pool.initialize()
            logger.info(
                f"{config.server_name} {config.server_version} started "
                f"(database {config.db_name}@{config.db_host}:{config.db_port})"
            )
        except Exception as e:
            logger.warning(
                f"Pool initialization failed (execute_sql will report "
                f"'not connected'): {e}"
            )
    else:
        logger.info(
            f"{config.server_name} started without a database "
            f"(set SQLGATE_DB_NAME to connect)"
        )

    try:
        yield {"pool": pool}
    finally:
        await pool.close()
        logger.info(f"{config.server_name} stopped")


mcp = FastMCP(
    config.server_name,
    lifespan=app_lifespan,
    host=config.http_host,
    port=config.http_port,
)

register_sql_tools(mcp, gateway)
register_schema_tools(mcp, gateway)


def main():
    mcp.run(transport=config.transport)


if __name__ == "__main__":
    main()

# main.py
import argparse
import asyncio
import contextlib
import os
import signal
import sys
from typing import List, Optional

import aiomysql
from dotenv import load_dotenv
from loguru import logger
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server

from .catalog import list_schema_resources, read_schema_resource
from .config import SERVER_NAME, SERVER_VERSION, Settings
from .db.mysql_client import AppContext, close_pool, create_pool
from .instrumentation import configure_logging
from .tools import call_tool, tool_definitions


def build_server(ctx: AppContext) -> Server:
    server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def handle_list_tools() -> List[types.Tool]:
        return tool_definitions(ctx.settings.limits)

    # arguments are checked by the handlers themselves so missing ones raise ValidationError
    @server.call_tool(validate_input=False)
    async def handle_call_tool(name: str, arguments: dict) -> types.CallToolResult:
        return await call_tool(ctx, name, arguments)

    @server.list_resources()
    async def handle_list_resources() -> List[types.Resource]:
        return await list_schema_resources(ctx)

    @server.read_resource()
    async def handle_read_resource(uri) -> List[ReadResourceContents]:
        text = await read_schema_resource(ctx, str(uri))
        return [ReadResourceContents(content=text, mime_type="application/json")]

    return server


async def _run_stdio(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


async def _run_until_stopped(server: Server, stop: asyncio.Event) -> None:
    server_task = asyncio.create_task(_run_stdio(server))
    stop_task = asyncio.create_task(stop.wait())
    done, pending = await asyncio.wait({server_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)
    if server_task in done:
        server_task.result()


async def serve(settings: Settings) -> int:
    """Run the stdio server until the client disconnects or SIGINT/SIGTERM arrives. Returns the exit code."""
    try:
        pool = await create_pool(settings)
    except (aiomysql.Error, OSError) as e:
        logger.error(f"could not connect to MySQL at {settings.host}:{settings.port}: {e}")
        return 1

    ctx = AppContext(settings=settings, pool=pool)
    server = build_server(ctx)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()

    def on_signal(sig: signal.Signals) -> None:
        logger.info(f"Received {sig.name}. Shutting down...")
        stop.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, on_signal, sig)

    logger.info(f"{SERVER_NAME} {SERVER_VERSION} serving {settings.user}@{settings.host}:{settings.port}/{settings.database}")
    exit_code = 0
    try:
        await _run_until_stopped(server, stop)
    except Exception:
        logger.exception("Server error")
        exit_code = 1
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(sig)
        try:
            await close_pool(pool)
        except Exception as e:
            logger.error(f"Error closing pool: {e}")
            exit_code = 1
    return exit_code


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="mysql-mcp-server", description="MySQL MCP server over stdio")
    parser.add_argument(
        "--log-level",
        default=os.getenv("MYSQL_MCP_LOG_LEVEL", "INFO"),
        help="stderr log level (env MYSQL_MCP_LOG_LEVEL, default INFO)",
    )
    parser.add_argument(
        "--audit-log",
        default=os.getenv("MYSQL_MCP_AUDIT_LOG"),
        help="also append query log entries to this file as JSON lines (env MYSQL_MCP_AUDIT_LOG)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    configure_logging(args.log_level, args.audit_log)
    try:
        settings = Settings.from_env()
    except ValueError as e:
        logger.error(str(e))
        return 1
    return asyncio.run(serve(settings))


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()

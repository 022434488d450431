"""
MemoryGraph - persistent knowledge graph memory for AI agents.

Command-line entry point: serve the MCP tools, apply migrations, or import a
JSON-lines memory export.
"""

from __future__ import annotations

import argparse
import json
from typing import Optional, Sequence

import core.config as config
from core.db import build_engine, init_db
from core.services.graph_store import GraphStore

logger = config.logger


def _open_store() -> GraphStore:
    config.validate_and_prepare_config()
    store = GraphStore(build_engine())
    init_db(store.engine)
    return store


def cmd_serve(args: argparse.Namespace) -> int:
    try:
        store = _open_store()
    except Exception as exc:
        logger.error(f"Failed to start server: {exc}")
        return 1

    if args.transport == "http":
        import uvicorn
        from app.main import create_app

        logger.info(
            f"{config.SERVICE_NAME} HTTP server listening on http://{args.host}:{args.port}/mcp"
        )
        # The app lifespan closes the store on shutdown.
        uvicorn.run(create_app(store, initialize=False), host=args.host, port=args.port)
        return 0

    from core.mcp import create_mcp_server

    mcp = create_mcp_server(store)
    try:
        if args.transport == "sse":
            logger.info(
                f"{config.SERVICE_NAME} SSE server listening on http://{args.host}:{args.port}/sse"
            )
            mcp.run(transport="sse", host=args.host, port=args.port)
        else:
            logger.info(f"{config.SERVICE_NAME} running on stdio")
            mcp.run()
    finally:
        store.close()
    return 0


def cmd_migrate(_args: argparse.Namespace) -> int:
    try:
        store = _open_store()
    except Exception as exc:
        logger.error(f"Migration failed: {exc}")
        return 1
    store.close()
    return 0


def cmd_import_jsonl(args: argparse.Namespace) -> int:
    from core.services.graph_import import import_jsonl

    try:
        store = _open_store()
    except Exception as exc:
        logger.error(f"Import failed: {exc}")
        return 1

    try:
        summary = import_jsonl(store, args.path)
    except OSError as exc:
        logger.error(f"Import failed: {exc}")
        return 1
    finally:
        store.close()

    print(json.dumps(summary, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="memorygraph",
        description="Knowledge graph memory MCP server with PostgreSQL backend",
    )
    p.add_argument("--version", action="version", version=config.SERVICE_VERSION)
    sub = p.add_subparsers(dest="cmd", required=True)

    serve = sub.add_parser("serve", help="Run the MCP server")
    serve.add_argument(
        "--transport",
        choices=["stdio", "sse", "http"],
        default=config.MCP_TRANSPORT,
        help="transport type (default: %(default)s)",
    )
    serve.add_argument("--host", default=config.MCP_HOST, help="host to bind to (sse, http)")
    serve.add_argument("--port", type=int, default=config.MCP_PORT, help="port to bind to (sse, http)")
    serve.set_defaults(func=cmd_serve)

    sub.add_parser("migrate", help="Wait for the database and apply the schema").set_defaults(
        func=cmd_migrate
    )

    imp = sub.add_parser("import-jsonl", help="Import a JSON-lines memory export")
    imp.add_argument("path", help="path to memory.json")
    imp.set_defaults(func=cmd_import_jsonl)

    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())

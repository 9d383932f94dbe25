"""Command-line interface for rowbridge."""

import argparse
import asyncio
import json
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

import uvicorn

from .config import settings


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="rowbridge - CSV import and export driven by mapping configurations"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Server command
    server_parser = subparsers.add_parser("serve", help="Start the web server")
    server_parser.add_argument(
        "--host", default=settings.host, help=f"Host to bind to (default: {settings.host})"
    )
    server_parser.add_argument(
        "--port", type=int, default=settings.port, help=f"Port to bind to (default: {settings.port})"
    )
    server_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    # Import command
    import_parser = subparsers.add_parser("import", help="Import a CSV file")
    import_parser.add_argument("config", help="Mapping configuration name")
    import_parser.add_argument("file", type=Path, help="CSV file (header line first)")

    # Export command
    export_parser = subparsers.add_parser("export", help="Export documents to a zip archive")
    export_parser.add_argument("config", help="Mapping configuration name")
    export_parser.add_argument(
        "--query", "-q", default="{}", help='Equality query as JSON, e.g. \'{"active": true}\''
    )

    # Dummy command
    dummy_parser = subparsers.add_parser("dummy", help="Write the CSV import template")
    dummy_parser.add_argument("config", help="Mapping configuration name")
    dummy_parser.add_argument("--output", "-o", type=Path, help="Output file (default: stdout)")

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        run_server(args.host, args.port, args.reload)
    elif args.command == "import":
        sys.exit(asyncio.run(run_import(args.config, args.file)))
    elif args.command == "export":
        try:
            query = json.loads(args.query)
        except json.JSONDecodeError as e:
            print(f"Invalid query: {e}")
            sys.exit(1)
        sys.exit(asyncio.run(run_export(args.config, query)))
    elif args.command == "dummy":
        sys.exit(asyncio.run(run_dummy(args.config, args.output)))
    else:
        parser.print_help()
        sys.exit(1)


def run_server(host: str, port: int, reload: bool):
    """Run the web server."""
    uvicorn.run(
        "rowbridge.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


async def run_import(config_name: str, path: Path) -> int:
    """Import a CSV file and print the report."""
    from .engine import StreamInterruptError
    from .mapping import ConfigurationError
    from .service import RowBridge

    bridge = RowBridge()
    await bridge.initialize()

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, bridge.interrupt_imports)
    except NotImplementedError:
        pass  # Windows event loops have no signal handlers

    try:
        report = await bridge.import_file(config_name, path)
        print(report.model_dump_json(indent=2))
        return 0
    except (ConfigurationError, StreamInterruptError, OSError) as e:
        print(f"Import failed: {e}")
        return 1
    finally:
        await bridge.shutdown()


async def run_export(config_name: str, query: dict) -> int:
    """Export documents and print where the archive was written."""
    from .engine import ArchiveError
    from .mapping import ConfigurationError
    from .service import RowBridge

    bridge = RowBridge()
    await bridge.initialize()
    try:
        result = await bridge.export(config_name, query)
        print(f"Exported {result.total} documents ({result.lines} lines)")
        print(f"Working directory: {result.working_dir}")
        print(f"Archive: {result.archive_path}")
        return 0
    except (ConfigurationError, ArchiveError) as e:
        print(f"Export failed: {e}")
        return 1
    finally:
        await bridge.shutdown()


async def run_dummy(config_name: str, output: Optional[Path] = None) -> int:
    """Write the import template of a mapping configuration."""
    from .mapping import ConfigurationError
    from .service import RowBridge

    bridge = RowBridge()
    await bridge.initialize()
    try:
        content = bridge.generate_dummy(config_name)
    except ConfigurationError as e:
        print(f"Cannot generate template: {e}")
        return 1
    finally:
        await bridge.shutdown()

    if output:
        output.write_text(content, encoding="utf-8")
        print(f"Template written to {output}")
    else:
        sys.stdout.write(content)
    return 0


if __name__ == "__main__":
    main()

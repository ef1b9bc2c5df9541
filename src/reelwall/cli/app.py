"""CLI application entry point and command routing for reelwall.

This module is the **process-level error boundary**.  It catches
:class:`~reelwall.exceptions.ReelwallError`, ``KeyboardInterrupt`` and
any unexpected ``Exception``, rendering user-friendly messages via Rich
and returning well-defined exit codes.

Commands
--------
* ``reelwall serve [--host H] [--port P]`` — run the HTTP service
* ``reelwall info <url>``                  — fetch and print metadata
* ``reelwall doctor``                      — environment diagnostics
* ``reelwall --version``
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from reelwall.cli import exit_codes
from reelwall.cli.console import console
from reelwall.config import Settings, configure_logging
from reelwall.exceptions import ReelwallError
from reelwall.version import __version__


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reelwall",
        description="Social-video metadata, download and live-wallpaper service.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default=None, help="Bind address (REELWALL_HOST).")
    serve.add_argument("--port", type=int, default=None, help="Bind port (REELWALL_PORT).")

    info = sub.add_parser("info", help="Fetch metadata for a video URL.")
    info.add_argument("url", help="YouTube, Facebook or Instagram video URL.")

    sub.add_parser("doctor", help="Check the runtime environment.")
    return parser


# ---------------------------------------------------------------------------
# Command dispatch
# ---------------------------------------------------------------------------

def _load_settings() -> Settings:
    """Honour an optional ``.env`` file, then read the environment."""
    from dotenv import load_dotenv

    load_dotenv()
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    return settings


def _handle_serve(host: str | None, port: int | None) -> int:
    import uvicorn

    from reelwall.api.app import create_app

    settings = _load_settings()
    app = create_app(settings)
    bind_host = host or settings.host
    bind_port = port or settings.port
    console.print(
        f"[bold]reelwall {__version__}[/bold] serving on http://{bind_host}:{bind_port}"
    )
    uvicorn.run(app, host=bind_host, port=bind_port, log_config=None)
    return exit_codes.SUCCESS


def _handle_info(url: str) -> int:
    from reelwall.bootstrap import build_services
    from reelwall.cli.info import render_metadata

    services = build_services(_load_settings())
    reference = services.metadata.validate(url)
    console.print(
        f"\n[bold]Fetching metadata…[/bold]  {reference.platform.label} {reference.video_id}\n"
    )
    metadata = asyncio.run(services.metadata.fetch_metadata(url))
    render_metadata(metadata)
    return exit_codes.SUCCESS


def _handle_doctor() -> int:
    from reelwall.cli.doctor import run_doctor

    return run_doctor(_load_settings())


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the reelwall CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        return _handle_serve(args.host, args.port)
    if args.command == "info":
        return _handle_info(args.url)
    if args.command == "doctor":
        return _handle_doctor()

    parser.print_help()
    return exit_codes.SUCCESS


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point."""
    try:
        code = main()
        sys.exit(code)
    except ReelwallError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)

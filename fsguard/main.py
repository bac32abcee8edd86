"""
FsGuard CLI Entry Point.

Usage:
    fsguard scan src/app.js src/util.js
    fsguard diff changes.patch
    git diff | fsguard diff
    fsguard validate --config settings.json
    fsguard config --set security.maxFileSize=2048
    fsguard --help
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from fsguard import __version__
from fsguard.diagnostics.diff_guard import scan_patch
from fsguard.diagnostics.engine import DiagnosticsEngine
from fsguard.diagnostics.quickfix import fixes_for
from fsguard.diagnostics.types import Diagnostic, Severity
from fsguard.errors import InvalidPatchError, InvalidSettingsError
from fsguard.metrics import MetricsLogger
from fsguard.policy.sources import (
    EnvConfigSource,
    JsonFileConfigSource,
    LayeredConfigSource,
    MappingConfigSource,
)
from fsguard.policy.store import PolicyStore

# Load environment
load_dotenv()

console = Console()

SEVERITY_STYLES = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFORMATION: "cyan",
}

EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_USAGE = 2


def build_store(config_path: Optional[str] = None, verbose: bool = True) -> PolicyStore:
    """
    Create a PolicyStore reading the settings file, overlaid by the environment.

    Args:
        config_path: JSON settings file; updates are written back to it
        verbose: Log fallbacks and rejections to stderr
    """
    base = JsonFileConfigSource(config_path) if config_path else MappingConfigSource()
    return PolicyStore(LayeredConfigSource(base, EnvConfigSource()), verbose=verbose)


def _parse_assignment(text: str) -> tuple[str, str]:
    if "=" not in text:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {text!r}")
    key, value = text.split("=", 1)
    return key.strip(), value.strip()


def render_diagnostics(results: dict[str, list[Diagnostic]], show_fixes: bool = False) -> None:
    """Print findings as a table, one row per diagnostic."""
    table = Table(title="FsGuard Findings", show_lines=False)
    table.add_column("File")
    table.add_column("Line", justify="right")
    table.add_column("Col", justify="right")
    table.add_column("Severity")
    table.add_column("Message")
    if show_fixes:
        table.add_column("Fixes")

    for uri, diagnostics in results.items():
        for d in diagnostics:
            style = SEVERITY_STYLES[d.severity]
            row = [
                uri,
                str(d.range.start.line + 1),
                str(d.range.start.character + 1),
                f"[{style}]{d.severity.value}[/{style}]",
                d.message,
            ]
            if show_fixes:
                row.append("\n".join(f.title for f in fixes_for(d)) or "-")
            table.add_row(*row)

    console.print(table)


def results_to_json(results: dict[str, list[Diagnostic]], show_fixes: bool = False) -> dict:
    payload = {}
    for uri, diagnostics in results.items():
        items = []
        for d in diagnostics:
            item = d.to_dict()
            if show_fixes:
                item["fixes"] = [f.to_dict() for f in fixes_for(d)]
            items.append(item)
        payload[uri] = items
    return payload


def _report(results: dict[str, list[Diagnostic]], args: argparse.Namespace) -> int:
    total = sum(len(d) for d in results.values())
    errors = sum(
        1 for diagnostics in results.values() for d in diagnostics if d.severity == Severity.ERROR
    )

    if args.json:
        console.print_json(json.dumps(results_to_json(results, args.fixes)))
    elif total == 0:
        console.print("[green]✓ No findings[/green]")
    else:
        render_diagnostics(results, args.fixes)
        console.print(
            f"\n[bold]{total}[/bold] finding(s), [bold red]{errors}[/bold red] error(s)"
        )

    return EXIT_FINDINGS if errors else EXIT_OK


# ============================================================================
# Commands
# ============================================================================

def cmd_scan(args: argparse.Namespace) -> int:
    store = build_store(args.config, verbose=not args.json)
    metrics = MetricsLogger(args.metrics) if args.metrics else None
    engine = DiagnosticsEngine(store, metrics=metrics)

    results = {}
    for name in args.files:
        try:
            text = Path(name).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            console.print(f"[red]Error: cannot read {name}: {e}[/red]")
            return EXIT_USAGE
        results[name] = engine.open(name, text)

    engine.dispose()
    store.dispose()
    return _report(results, args)


def cmd_diff(args: argparse.Namespace) -> int:
    store = build_store(args.config, verbose=not args.json)

    if args.patch in (None, "-"):
        diff_text = sys.stdin.read()
    else:
        try:
            diff_text = Path(args.patch).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            console.print(f"[red]Error: cannot read {args.patch}: {e}[/red]")
            return EXIT_USAGE

    try:
        results = scan_patch(diff_text, store.get_settings())
    except InvalidPatchError as e:
        console.print(f"[red]Error: {e}[/red]")
        return EXIT_USAGE

    return _report(results, args)


def cmd_validate(args: argparse.Namespace) -> int:
    store = build_store(args.config, verbose=False)

    if isinstance(store.last_error, InvalidSettingsError):
        errors = store.last_error.errors
        warnings = store.last_error.warnings
    elif store.last_error is not None:
        console.print(f"[red]{store.last_error}[/red]")
        return EXIT_FINDINGS
    else:
        result = store.validate_settings(store.get_settings())
        errors, warnings = result.errors, result.warnings

    for warning in warnings:
        console.print(f"[yellow]⚠ {warning}[/yellow]")

    if errors:
        console.print(Panel.fit(
            "\n".join(f"[red]✗[/red] {e}" for e in errors),
            title="Invalid settings",
            border_style="red",
        ))
        return EXIT_FINDINGS

    console.print("[green]✓ Settings are valid[/green]")
    return EXIT_OK


def cmd_config(args: argparse.Namespace) -> int:
    store = build_store(args.config, verbose=False)

    if args.set:
        previous_error = store.last_error
        try:
            store.update_settings(dict(args.set))
        except InvalidSettingsError as e:
            console.print(Panel.fit(
                "\n".join(f"[red]✗[/red] {error}" for error in e.errors),
                title="Update rejected",
                border_style="red",
            ))
            return EXIT_FINDINGS
        if store.last_error is not previous_error:
            console.print(f"[yellow]⚠ {store.last_error}[/yellow]")

    console.print_json(json.dumps(store.get_settings().to_dict()))
    return EXIT_OK


# ============================================================================
# Parser
# ============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fsguard",
        description="FsGuard - filesystem access policy checks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  fsguard scan src/app.js
  git diff | fsguard diff --json
  fsguard validate --config .vscode/fsguard.json

Settings come from --config (JSON) and FSGUARD_<SECTION>_<KEY>
environment variables, which override the file.
        """,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"FsGuard {__version__}",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        help="JSON settings file",
    )

    output = argparse.ArgumentParser(add_help=False)
    output.add_argument(
        "--json",
        action="store_true",
        help="Print findings as JSON",
    )
    output.add_argument(
        "--fixes",
        action="store_true",
        help="Include quick fixes for each finding",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser(
        "scan", parents=[common, output], help="Scan source files"
    )
    scan_parser.add_argument("files", nargs="+", help="Files to scan")
    scan_parser.add_argument(
        "--metrics",
        help="Append one JSON line per scanned file to this log",
    )
    scan_parser.set_defaults(handler=cmd_scan)

    diff_parser = subparsers.add_parser(
        "diff", parents=[common, output], help="Scan lines added by a unified diff"
    )
    diff_parser.add_argument(
        "patch", nargs="?", help="Patch file (default: read stdin)"
    )
    diff_parser.set_defaults(handler=cmd_diff)

    validate_parser = subparsers.add_parser(
        "validate", parents=[common], help="Validate the effective settings"
    )
    validate_parser.set_defaults(handler=cmd_validate)

    config_parser = subparsers.add_parser(
        "config", parents=[common], help="Show or update the effective settings"
    )
    config_parser.add_argument(
        "--set",
        action="append",
        type=_parse_assignment,
        metavar="KEY=VALUE",
        help="Update a setting (repeatable); written to --config",
    )
    config_parser.set_defaults(handler=cmd_config)

    return parser


def main(argv: Optional[list[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        code = args.handler(args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)

    sys.exit(code)


if __name__ == "__main__":
    main()

"""Command-line interface for logshield."""

import json
import sys
import logging
from pathlib import Path
from typing import IO, Optional

import click
import yaml

from logshield import __version__
from logshield.engine import Engine
from logshield.errors import InputTooLarge
from logshield.formatter import count_by_rule
from logshield.models import MatchRecord, SanitizeResult, Tier
from logshield.modes import resolve_mode

TIER_CHOICES = [tier.value for tier in Tier]


class NoInputError(click.ClickException):
    """No file was given and STDIN is an interactive terminal."""

    exit_code = 2


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration. Logs always go to stderr."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def read_input(
    file: Optional[Path], force_stdin: bool, stdin: Optional[IO[bytes]] = None
) -> str:
    """
    Read the log to sanitize.

    Args:
        file: File given on the command line, if any
        force_stdin: Read STDIN even if it looks interactive
        stdin: Stream to use as STDIN. Defaults to the process STDIN.

    Returns:
        Input text, line endings untouched

    Raises:
        NoInputError: If there is no file and STDIN is a terminal
    """
    if file is not None:
        return file.read_bytes().decode("utf-8")

    if stdin is None:
        stdin = click.get_binary_stream("stdin")

    if force_stdin or not stdin.isatty():
        return stdin.read().decode("utf-8")

    raise NoInputError("No input provided")


def _aligned_counts(counts: list[tuple[str, int]]) -> list[str]:
    width = max(len(rule) for rule, _ in counts)
    return [f"  {rule.ljust(width)}  x{count}" for rule, count in counts]


def _plural(total: int) -> str:
    return "redaction" if total == 1 else "redactions"


def render_dry_run_report(matches: list[MatchRecord]) -> str:
    """Render the dry-run report. It never contains input content."""
    if not matches:
        return "logshield (dry-run)\nDetected 0 redactions.\nNo output was modified.\n"

    # Most frequent first, ties by name
    counts = sorted(count_by_rule(matches).items(), key=lambda item: (-item[1], item[0]))
    lines = ["logshield (dry-run)", f"Detected {len(matches)} {_plural(len(matches))}:"]
    lines.extend(_aligned_counts(counts))
    lines.extend(["", "No output was modified.", "Use without --dry-run to apply."])
    return "\n".join(lines) + "\n"


def render_summary(matches: list[MatchRecord]) -> str:
    """Render the per-rule summary, alphabetically by rule name."""
    if not matches:
        return "logshield: no redactions detected\n"

    lines = [f"logshield summary: {len(matches)} {_plural(len(matches))}"]
    lines.extend(_aligned_counts(list(count_by_rule(matches).items())))
    return "\n".join(lines) + "\n"


def write_output(result: SanitizeResult, as_json: bool) -> None:
    """Write the result to stdout."""
    if as_json:
        click.echo(json.dumps(result.to_dict()))
    else:
        click.echo(result.output, nl=False)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="logshield")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """logshield: Strip secrets and personal data from logs."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


@main.command()
@click.argument(
    "file",
    required=False,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--strict", is_flag=True, help="Aggressive redaction")
@click.option("--json", "as_json", is_flag=True, help="JSON output")
@click.option("--summary", is_flag=True, help="Print per-rule summary to stderr")
@click.option("--dry-run", is_flag=True, help="Report detected redactions only")
@click.option(
    "--fail-on-detect",
    is_flag=True,
    help="Exit with code 1 if any redaction occurs",
)
@click.option("--stdin", "force_stdin", is_flag=True, help="Force read from STDIN")
@click.option(
    "--tier",
    type=click.Choice(TIER_CHOICES, case_sensitive=False),
    default=None,
    help="License tier selecting the rule set (default: free)",
)
@click.pass_context
def scan(
    ctx: click.Context,
    file: Optional[Path],
    strict: bool,
    as_json: bool,
    summary: bool,
    dry_run: bool,
    fail_on_detect: bool,
    force_stdin: bool,
    tier: Optional[str],
) -> None:
    """Sanitize a log file, or STDIN when piped."""
    if file is not None and force_stdin:
        raise click.UsageError("Cannot read from both STDIN and file", ctx=ctx)

    if summary and as_json:
        raise click.UsageError("--summary cannot be used with --json", ctx=ctx)

    try:
        text = read_input(file, force_stdin)
    except UnicodeDecodeError:
        click.echo("Error: Input is not valid UTF-8", err=True)
        sys.exit(2)

    try:
        result = Engine().sanitize(text, strict=strict, dry_run=dry_run, tier=tier)
    except InputTooLarge as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(2)

    if dry_run and not as_json:
        click.echo(render_dry_run_report(result.matches), nl=False)
    else:
        write_output(result, as_json)

    if summary:
        click.echo(render_summary(result.matches), err=True, nl=False)

    if fail_on_detect and result.has_matches:
        sys.exit(1)


@main.command()
@click.option(
    "--tier",
    type=click.Choice(TIER_CHOICES, case_sensitive=False),
    default=None,
    help="License tier (default: free)",
)
@click.option("--strict", is_flag=True, help="Show the strict rule set")
def rules(tier: Optional[str], strict: bool) -> None:
    """List active rules in execution order."""
    mode = resolve_mode(strict=strict, tier=tier)

    click.echo(
        f"{len(mode.rules)} rules active for tier {mode.tier.value}"
        f" (strict: {'on' if mode.context.strict else 'off'})\n"
    )

    for rule in mode.rules:
        marker = "" if not rule.strict_only or mode.context.strict else " (inactive)"
        click.echo(f"  {rule.name:<28} {rule.group.value:<12} {rule.description}{marker}")

    if mode.entropy:
        click.echo("\n  + entropy analysis (HIGH_ENTROPY_SECRET)")


@main.command()
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to listen on",
)
@click.option(
    "--host",
    default=None,
    help="Host to bind to",
)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Configuration file",
)
@click.pass_context
def serve(
    ctx: click.Context,
    port: Optional[int],
    host: Optional[str],
    config: Optional[Path],
) -> None:
    """Start the local HTTP server."""
    try:
        import uvicorn
        from logshield.server import create_app
    except ImportError:
        click.echo(
            "Error: Server dependencies not installed. Install with: pip install logshield[server]",
            err=True,
        )
        sys.exit(1)

    # Load config
    config_data = {}
    if config:
        with open(config, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}

    # CLI options win over the config file
    server_config = config_data.get("server", {})
    port = port or server_config.get("port", 8080)
    host = host or server_config.get("host", "127.0.0.1")

    click.echo(f"Starting server on {host}:{port}", err=True)

    app = create_app(config_data)

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level="info" if ctx.obj.get("verbose") else "warning",
    )


if __name__ == "__main__":
    main()

"""
CLI interface for tagging files.

Usage:
    tagger add photos/cat.jpg pets favorite
    tagger tag pets photos/cat.jpg photos/dog.jpg
    tagger find pets
    tagger status photos/cat.jpg
    tagger list
    tagger serve

The older flag style (tagger --add ..., tagger --find ...)
is still accepted.
"""

import json
import os
import sys
from pathlib import Path
from typing import NoReturn, Optional

import tomli_w
import typer
from typing_extensions import Annotated

from .api import Tagger
from .config import TaggerConfig, config_to_dict, load_config, save_config
from .errors import TaggerError
from .logging_config import configure_quiet_mode, enable_debug_mode

# Legacy first-argument flags and the commands they map to
LEGACY_COMMANDS = {
    "--add": "add",
    "--tag": "tag",
    "--find": "find",
    "--status": "status",
    "--list": "list",
    "--server": "serve",
}


# Configure quiet mode by default
# Set TAGGER_VERBOSE=1 to enable debug mode via environment
if os.environ.get("TAGGER_VERBOSE") == "1":
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        print(f"tagger {version('tagger')}")
        raise typer.Exit()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_json_output = False
_root_override: Optional[Path] = None


def _json_callback(value: bool):
    global _json_output
    _json_output = value


def _get_json_output() -> bool:
    return _json_output


def _root_callback(value: Optional[Path]):
    global _root_override
    _root_override = value


def _get_root() -> Path:
    root = _root_override if _root_override is not None else Path.cwd()
    return Path(os.path.abspath(root))


app = typer.Typer(
    name="tagger",
    help="Tag files in a directory tree and find them by tag.",
    no_args_is_help=True,
    rich_markup_mode=None,
)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
        callback=_json_callback,
        is_eager=True,
    )] = False,
    root: Annotated[Optional[Path], typer.Option(
        "--root", "-r",
        envvar="TAGGER_ROOT",
        help="Working root (default: current directory)",
        callback=_root_callback,
        is_eager=True,
    )] = None,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
):
    """Tag files in a directory tree and find them by tag."""


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _fail(message: str) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _get_config() -> TaggerConfig:
    """Load configuration for the working root, exiting on errors."""
    root = _get_root()
    if not root.is_dir():
        _fail(f"root is not a directory: {root}")
    try:
        return load_config(root)
    except ValueError as e:
        _fail(str(e))


def _get_tagger() -> Tagger:
    """Load the tag index, exiting if the snapshot is unusable."""
    config = _get_config()
    try:
        return Tagger(config=config)
    except TaggerError as e:
        _fail(f"loading database: {e}")


def _echo_json(data) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2))


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

# Tag names may start with '-', so unknown options are taken as arguments
TAG_ARGS = {"ignore_unknown_options": True}


@app.command(context_settings=TAG_ARGS)
def add(
    path: Annotated[str, typer.Argument(help="File to tag")],
    tags: Annotated[list[str], typer.Argument(help="Tags to add")],
):
    """Add one or more tags to a file."""
    tg = _get_tagger()
    try:
        key = tg.add_tags(path, tags)
    except (TaggerError, ValueError) as e:
        _fail(str(e))

    if _get_json_output():
        _echo_json({"path": key, "tags": tags})
    else:
        typer.echo("File tags added successfully")


@app.command("tag", context_settings=TAG_ARGS)
def tag_cmd(
    tag: Annotated[str, typer.Argument(help="Tag to apply")],
    paths: Annotated[list[str], typer.Argument(help="Files to tag")],
):
    """Apply one tag to several files.

    Paths that cannot be tagged are reported and skipped; the rest are
    still tagged. Exits 1 if any path failed.
    """
    tg = _get_tagger()
    try:
        result = tg.tag_files(tag, paths)
    except (TaggerError, ValueError) as e:
        _fail(str(e))

    if _get_json_output():
        _echo_json({
            "tag": tag,
            "tagged": result.tagged,
            "failed": {path: str(e) for path, e in result.failures},
        })
    else:
        for key in result.tagged:
            typer.echo(f"Added tag '{tag}' to '{key}'")
        for path, e in result.failures:
            typer.echo(f"Error: {e}", err=True)

    if not result.ok:
        raise typer.Exit(1)


@app.command()
def find(
    tag: Annotated[str, typer.Argument(help="Tag to search for")],
):
    """List files carrying a tag."""
    tg = _get_tagger()
    paths = [tg.absolute(key) for key in tg.files_for_tag(tag)]

    if _get_json_output():
        _echo_json(paths)
    elif not paths:
        typer.echo(f"No files found with tag: {tag}")
    else:
        typer.echo(f"Files with tag '{tag}':")
        for path in paths:
            typer.echo(f"  {path}")


@app.command()
def status(
    path: Annotated[str, typer.Argument(help="File to inspect")],
):
    """Show the tags on a file."""
    tg = _get_tagger()
    try:
        key = tg.key_for(path, must_exist=False)
        names = tg.tags_for_file(path)
    except TaggerError as e:
        _fail(str(e))

    if _get_json_output():
        _echo_json({"path": key, "tags": names})
    elif names is None:
        typer.echo("File not tagged")
    else:
        typer.echo(f"Existing tags for '{key}':")
        for name in names:
            typer.echo(f"  {name}")


@app.command("list")
def list_cmd():
    """List all known tags."""
    tg = _get_tagger()
    names = tg.list_tags()

    if _get_json_output():
        _echo_json(names)
    else:
        typer.echo("Existing tags:")
        for name in names:
            typer.echo(f"  {name}")


@app.command()
def serve(
    host: Annotated[Optional[str], typer.Option(
        "--host", help="Address to bind (default from config: 127.0.0.1)"
    )] = None,
    port: Annotated[Optional[int], typer.Option(
        "--port", "-p", help="Port to listen on (default from config: 9000)"
    )] = None,
    thumbnails: Annotated[Optional[Path], typer.Option(
        "--thumbnails", help="Thumbnail cache directory"
    )] = None,
):
    """Browse the working root with thumbnail previews over HTTP."""
    from .server import serve as run_server

    config = _get_config()
    host = host if host is not None else config.server.host
    port = port if port is not None else config.server.port
    thumbnails = thumbnails if thumbnails is not None else config.server.thumbnails

    typer.echo(f"Serving {config.root} at http://{host}:{port}/")
    try:
        run_server(config.root, thumbnails, host, port)
    except OSError as e:
        _fail(f"starting server: {e}")


@app.command()
def config(
    init: Annotated[bool, typer.Option(
        "--init", help="Write a config file with the current settings"
    )] = False,
):
    """Show the effective configuration."""
    cfg = _get_config()

    if init:
        if cfg.exists():
            _fail(f"config already exists: {cfg.config_path}")
        save_config(cfg)
        typer.echo(f"Wrote {cfg.config_path}")
        return

    data = config_to_dict(cfg)
    if _get_json_output():
        _echo_json({"root": str(cfg.root), **data})
    else:
        typer.echo(f"# root: {cfg.root}")
        typer.echo(tomli_w.dumps(data), nl=False)


# -----------------------------------------------------------------------------

def translate_legacy_args(argv: list[str]) -> list[str]:
    """Rewrite 'tagger --add ...' style invocations to subcommands."""
    if argv and argv[0] in LEGACY_COMMANDS:
        return [LEGACY_COMMANDS[argv[0]], *argv[1:]]
    return argv


def main():
    args = translate_legacy_args(sys.argv[1:])
    try:
        app(args=args, prog_name="tagger")
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(e, context=" ".join(["tagger", *args]))
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()

"""Typer application wiring for the bibsmith CLI."""

from __future__ import annotations

import typer

from bibsmith.core import ConfigError, load_config

from ._options import ConfigOption, DebugOption, DirectoryOption, VerboseOption
from .commands import entries_app, libraries_app, merged
from .state import debug_enabled, emit_error, get_cli_state, set_cli_state


app = typer.Typer(
    help="Manage BibTeX libraries stored in a working directory.",
    context_settings={"help_option_names": ["--help"]},
    no_args_is_help=True,
)


@app.callback()
def configure(
    ctx: typer.Context,
    directory: DirectoryOption = None,
    config_file: ConfigOption = None,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
) -> None:
    """Resolve the store configuration shared by every command."""
    state = set_cli_state(ctx=ctx, verbosity=verbose, debug=debug)
    try:
        state.config = load_config(config_file, working_dir=directory)
    except ConfigError as exc:
        emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


app.add_typer(libraries_app, name="libraries")
app.add_typer(entries_app, name="entries")
app.command("merged")(merged)


def main() -> None:
    """Entry point compatible with console scripts."""
    try:
        app()
    except typer.Exit:
        raise
    except KeyboardInterrupt as exc:
        if debug_enabled():
            raise
        emit_error("Operation cancelled by user.", exception=exc)
        raise typer.Exit(code=1) from exc
    except SystemExit:
        raise
    except Exception as exc:  # pragma: no cover - last-resort reporting
        state = get_cli_state()
        if state.show_tracebacks:
            from rich.traceback import Traceback

            tb = Traceback.from_exception(
                type(exc),
                exc,
                exc.__traceback__,
                show_locals=state.verbosity >= 2,
            )
            state.err_console.print(tb)
        else:
            emit_error(str(exc), exception=exc)
        raise typer.Exit(code=1) from exc


__all__ = ["app", "main"]

"""gav-bootstrap CLI - run a main class straight from a Maven repository."""

import logging
import sys
from pathlib import Path

import click
from rich.traceback import Traceback

from .bootstrap import Bootstrap
from .console import console
from .errors import BootstrapError
from .errors import InvocationError
from .logging_setup import init_logging
from .settings import SettingsManager
from .utils.error_format import escape_markup
from .utils.error_format import format_error_message

logger = logging.getLogger(__name__)

# Everything after ENTRY_CLASS belongs to the invoked program, untouched
CONTEXT_SETTINGS = {
    "ignore_unknown_options": True,
    "allow_interspersed_args": False,
    "help_option_names": ["-h", "--help"],
}


def _display_invocation_error(error: InvocationError) -> None:
    original = error.original
    console.print(f"[red]Error:[/red] {escape_markup(error.name)}.main failed")
    console.print(Traceback.from_exception(type(original), original, original.__traceback__, show_locals=False))


@click.command(context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="gav-bootstrap")
@click.option("--repo-url", help="Repository to use instead of Maven Central")
@click.option("--cache-dir", type=click.Path(file_okay=False, path_type=Path), help="Local artifact cache directory")
@click.option(
    "--defaults-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Properties file with default versions keyed by group:name",
)
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.argument("coordinate")
@click.argument("entry_class")
@click.argument("entry_args", nargs=-1, type=click.UNPROCESSED)
def main(
    repo_url: str | None,
    cache_dir: Path | None,
    defaults_file: Path | None,
    verbose: bool,
    coordinate: str,
    entry_class: str,
    entry_args: tuple[str, ...],
):
    """Resolve COORDINATE (group:name[:version]) and run ENTRY_CLASS.main(ENTRY_ARGS).

    Options must come before COORDINATE; all arguments after ENTRY_CLASS are
    passed to the program as they are.
    """
    try:
        settings = SettingsManager().load(
            repository_url=repo_url,
            cache_dir=cache_dir,
            defaults_file=defaults_file,
            log_level="DEBUG" if verbose else None,
        )
        init_logging(settings.log_level)
        Bootstrap(settings).run(coordinate, entry_class, list(entry_args))
    except InvocationError as e:
        _display_invocation_error(e)
        sys.exit(1)
    except BootstrapError as e:
        console.print(f"[red]Error:[/red] {escape_markup(format_error_message(e))}")
        if verbose:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()

"""Domisol CLI entry point."""

import locale
import sys
from pathlib import Path

import click
from loguru import logger

from domisol import __version__
from domisol.catalog_loader import CatalogError, load_catalog
from domisol.filter_controller import FilterController
from domisol.output import setup_logging
from domisol.query_engine import available_genres, evaluate
from domisol.result_renderers import TextResultRenderer, build_renderer
from domisol.sheet_models import CATEGORIES, Category, FilterState, SheetRecord, SortMode

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]
SORT_CHOICES = [mode.value for mode in SortMode]
CATEGORY_CHOICES = [category.value for category in CATEGORIES]

BROWSE_HELP = """\
Commands:
  q <text>      set the search text (empty clears it)
  c <category>  toggle a category (vocal, instrumental)
  g <genre>     toggle a genre
  s <mode>      sort by popular, newest, oldest or title
  genres        list available genres
  clear         reset all filters
  help          show this help
  quit          leave"""


def _load_or_exit(catalog_path: str) -> list[SheetRecord]:
    """Load the catalog, reporting failures the way every command does."""
    try:
        return load_catalog(catalog_path)
    except CatalogError as exc:
        click.echo(f"  ERROR: Invalid catalog — {exc}", err=True)
        sys.exit(1)
    except OSError as exc:
        click.echo(f"  ERROR: Could not read catalog — {exc}", err=True)
        sys.exit(1)


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="domisol")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="DOMISOL_LOG_LEVEL",
    help="Minimum log level written to stderr (or --log-file).",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    metavar="PATH",
    help="Write logs to this rotating file instead of stderr.",
)
def main(log_level: str, log_file: Path | None) -> None:
    """Domisol — discover, search & sort sheet music."""
    setup_logging(level=log_level.upper(), log_file=log_file)
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as exc:
        logger.warning(f"Keeping the C collation for title sorting: {exc}")


# ── search subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.argument("catalog", type=click.Path(exists=True, readable=True))
@click.option("--query", "-q", default="", metavar="TEXT", help="Free-text search.")
@click.option(
    "--category",
    "-c",
    "categories",
    multiple=True,
    type=click.Choice(CATEGORY_CHOICES, case_sensitive=False),
    help="Restrict to a category. Repeat to allow several.",
)
@click.option(
    "--genre",
    "-g",
    "genres",
    multiple=True,
    metavar="GENRE",
    help="Restrict to a genre. Repeat to allow several.",
)
@click.option(
    "--sort",
    "-s",
    "sort_mode",
    type=click.Choice(SORT_CHOICES, case_sensitive=False),
    default=SortMode.POPULAR.value,
    show_default=True,
    help="Result order.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"], case_sensitive=False),
    default="text",
    show_default=True,
    help="Output format.",
)
def search(
    catalog: str,
    query: str,
    categories: tuple[str, ...],
    genres: tuple[str, ...],
    sort_mode: str,
    output_format: str,
) -> None:
    """
    Filter and sort a sheet catalog once and print the result.

    CATALOG is a JSON catalog file or a folder of MusicXML files.

    \b
    Examples:
      domisol search sheets.json -q bach
      domisol search sheets.json -c vocal -g classical --sort oldest
      domisol search scores/ --sort title --format json
    """
    sheets = _load_or_exit(catalog)
    state = FilterState(
        query=query,
        selected_categories={Category.coerce(c) for c in categories},
        selected_genres=set(genres),
        sort_mode=SortMode.coerce(sort_mode),
    )
    renderer = build_renderer(output_format)
    click.echo(renderer.render(evaluate(sheets, state), len(sheets)))


# ── genres subcommand ──────────────────────────────────────────────────────────

@main.command()
@click.argument("catalog", type=click.Path(exists=True, readable=True))
def genres(catalog: str) -> None:
    """List the distinct genres present in CATALOG."""
    for genre in available_genres(_load_or_exit(catalog)):
        click.echo(genre)


# ── browse subcommand ──────────────────────────────────────────────────────────

def _apply_command(controller: FilterController, line: str) -> bool:
    """Apply one browse command. Returns False when the session should end."""
    command, _, argument = line.strip().partition(" ")
    command = command.lower()
    argument = argument.strip()

    if command in {"quit", "exit"}:
        return False
    if command == "q":
        controller.set_query(argument)
    elif command == "c":
        try:
            controller.toggle_category(argument)
        except ValueError:
            click.echo(f"  Unknown category '{argument}'. Use: {', '.join(CATEGORY_CHOICES)}.")
    elif command == "g":
        if argument:
            controller.toggle_genre(argument)
        else:
            click.echo("  Usage: g <genre>")
    elif command == "s":
        try:
            controller.set_sort_mode(argument)
        except ValueError:
            click.echo(f"  Unknown sort mode '{argument}'. Use: {', '.join(SORT_CHOICES)}.")
    elif command == "genres":
        click.echo("  " + (", ".join(controller.available_genres) or "(none)"))
    elif command == "clear":
        controller.clear_all()
    elif command in {"help", "?"}:
        click.echo(BROWSE_HELP)
    elif command:
        click.echo(f"  Unknown command '{command}'. Type 'help' for commands.")
    return True


def _describe_state(controller: FilterController) -> str:
    state = controller.state
    parts = []
    if state.query:
        parts.append(f'"{state.query}"')
    parts.extend(sorted(category.value for category in state.selected_categories))
    parts.extend(sorted(state.selected_genres))
    filters = ", ".join(parts) if parts else "none"
    return f"Active filters: {filters}  |  Sort: {state.sort_mode.label}"


@main.command()
@click.argument("catalog", type=click.Path(exists=True, readable=True))
def browse(catalog: str) -> None:
    """
    Interactively narrow CATALOG; results are reprinted after every change.

    Commands are read one per line from stdin. Type 'help' for the list.
    """
    sheets = _load_or_exit(catalog)
    controller = FilterController(sheets)
    renderer = TextResultRenderer()

    def show(results: list[SheetRecord]) -> None:
        click.echo(renderer.render(results, len(controller.catalog)))
        click.echo(_describe_state(controller))

    controller.subscribe(show)

    click.echo(f"domisol v{__version__}")
    click.echo(BROWSE_HELP)
    click.echo()
    show(controller.results)

    stdin = click.get_text_stream("stdin")
    while True:
        click.echo("> ", nl=False)
        line = stdin.readline()
        if not line:
            click.echo()
            break
        if not _apply_command(controller, line):
            break

"""
CLI interface for the tag system.

Usage:
    tagsys manage add work --category
    tagsys manage add urgent --parent work
    tagsys assign notes.txt urgent
    tagsys search ~/docs +work _archived
"""

import json
import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from . import taxonomy
from .config import TagConfig, load_config, normalize_namespace, save_config
from .errors import NotAssignableError, TagError, TagNotFoundError
from .logging_config import configure_ops_log, configure_quiet_mode, enable_debug_mode
from .query import expand_query
from .search import DirectoryMatcher, PathError
from .taxonomy_file import TaxonomyFile
from .types import Forest
from .xattrs import FileTagger

logger = logging.getLogger(__name__)


# Configure quiet mode by default
# Set TAGSYS_VERBOSE=1 to enable debug mode via environment
if os.environ.get("TAGSYS_VERBOSE") == "1":
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        print(f"tagsys {version('tagsys')}")
        raise typer.Exit()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_settings_override: Optional[Path] = None
_ops_handler: Optional[logging.Handler] = None


app = typer.Typer(
    name="tagsys",
    help="Tag files with a hierarchy of user-defined tags.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

manage_app = typer.Typer(
    help="Manage the tags of the tag system.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
app.add_typer(manage_app, name="manage")


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
    settings: Annotated[Optional[Path], typer.Option(
        "--settings",
        envvar="TAGSYS_SETTINGS",
        help="Path to the settings file (default: ~/.tagsys6.toml)",
    )] = None,
):
    """Tag files with a hierarchy of user-defined tags."""
    global _settings_override
    _settings_override = settings


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _fail(message: str):
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


@contextmanager
def _reported_errors():
    """Turn TagErrors into a clean message and exit code 1."""
    try:
        yield
    except TagError as e:
        _fail(str(e))


def _get_config() -> TagConfig:
    """Resolve settings and attach the operations log if one is configured."""
    global _ops_handler
    try:
        config = load_config(_settings_override)
    except ValueError as e:
        _fail(str(e))

    if _ops_handler is not None:
        logging.getLogger("tagsys").removeHandler(_ops_handler)
        _ops_handler.close()
        _ops_handler = None
    if config.ops_log is not None:
        _ops_handler = configure_ops_log(config.ops_log)
    return config


def _load_taxonomy(config: TagConfig, missing_ok: bool = False) -> tuple[TaxonomyFile, Forest]:
    store = TaxonomyFile(config.taxonomy_path)
    with _reported_errors():
        forest = store.load(missing_ok=missing_ok)
    return store, forest


def _require_file(file: Path):
    if not os.path.lexists(file):
        _fail(f"Could not open target file '{file}': No such file or directory")


# -----------------------------------------------------------------------------
# File tags
# -----------------------------------------------------------------------------

@app.command()
def assign(
    file: Annotated[Path, typer.Argument(help="File to tag")],
    tags: Annotated[list[str], typer.Argument(help="Tags to assign")],
):
    """
    Assign tag(s) to a file.

    The tags must exist in the taxonomy and be assignable (see 'manage').
    Stops at the first tag that cannot be assigned.
    """
    config = _get_config()
    _require_file(file)
    _, forest = _load_taxonomy(config)
    tagger = FileTagger(config.namespace)

    for tag in tags:
        with _reported_errors():
            try:
                node = taxonomy.find(forest, tag)
            except TagNotFoundError:
                _fail(f"Unknown tag '{tag}'")
            if not taxonomy.is_assignable(node):
                raise NotAssignableError(tag)
            try:
                tagger.set_tag(file, tag)
            except OSError as e:
                _fail(f"Could not tag '{file}': {e.strerror or e}")


@app.command()
def remove(
    file: Annotated[Path, typer.Argument(help="File to untag")],
    tags: Annotated[Optional[list[str]], typer.Argument(help="Tags to remove")] = None,
    clear: Annotated[bool, typer.Option(
        "--clear", "-c",
        help="Remove all the tags assigned to the file",
    )] = False,
):
    """
    Remove tag(s) assigned to a file.

    \b
    Examples:
        tagsys remove notes.txt urgent later
        tagsys remove --clear notes.txt
    """
    if clear and tags:
        _fail("Specify tags or --clear, not both")
    if not clear and not tags:
        _fail("Specify at least one tag or --clear")

    config = _get_config()
    _require_file(file)
    tagger = FileTagger(config.namespace)

    if clear:
        try:
            failures = tagger.clear_tags(file)
        except OSError as e:
            _fail(f"Could not clear tags: {e.strerror or e}")
    else:
        failures = []
        for tag in tags:
            try:
                tagger.remove_tag(file, tag)
            except OSError as e:
                failures.append((tag, e))

    for tag, e in failures:
        typer.echo(f"Error removing tag '{tag}': {e.strerror or e}", err=True)
    if failures:
        raise typer.Exit(1)


@app.command()
def show(
    file: Annotated[Path, typer.Argument(help="File whose tags to display")],
    quiet: Annotated[bool, typer.Option(
        "--quiet", "-q",
        help="Print only the tag names",
    )] = False,
):
    """Display the tags set by the user for a file."""
    config = _get_config()
    _require_file(file)
    try:
        tags = FileTagger(config.namespace).list_tags(file)
    except OSError as e:
        _fail(f"Could not list tags: {e.strerror or e}")

    if tags and not quiet:
        typer.echo(f"# file '{file}' has tags:")
    for tag in tags:
        typer.echo(tag)


@app.command()
def search(
    directory: Annotated[Path, typer.Argument(help="Directory to search recursively")],
    terms: Annotated[Optional[list[str]], typer.Argument(
        help="Search terms: +tag (must have) or _tag (must not have)",
    )] = None,
):
    """
    Search recursively for files matching the given expression.

    \b
    The expression is a list of tags preceded by a modifier:
        +tag   the file MUST be tagged with tag (or a descendant)
        _tag   the file MUST NOT be tagged with tag (nor a descendant)
    Without an expression, every file tagged by the current user is listed.
    With only _tag terms, untagged files match too.
    """
    if not directory.is_dir():
        _fail(f"Directory '{directory}' does not exist")

    config = _get_config()
    terms = terms or []
    _, forest = _load_taxonomy(config, missing_ok=not terms)
    with _reported_errors():
        match_set = expand_query(forest, terms)

    def _print_error(failure: PathError):
        typer.echo(f"Could not examine {failure}", err=True)

    tagger = FileTagger(config.namespace)
    matcher = DirectoryMatcher(match_set, tagger.read_tags, on_error=_print_error)
    for path in matcher.walk(directory):
        typer.echo(path)

    if not matcher.ok:
        raise typer.Exit(1)


# -----------------------------------------------------------------------------
# Taxonomy management
# -----------------------------------------------------------------------------

@manage_app.command("add")
def manage_add(
    name: Annotated[str, typer.Argument(help="Name of the new tag")],
    parent: Annotated[Optional[str], typer.Option(
        "--parent", "-p",
        help="Create the tag as a child of this tag",
    )] = None,
    category: Annotated[bool, typer.Option(
        "--category", "-C",
        help="Create a tag that cannot be assigned to files",
    )] = False,
):
    """
    Create a new tag. Fails if a tag with the same name exists anywhere.

    \b
    Examples:
        tagsys manage add music
        tagsys manage add work --category
        tagsys manage add urgent --parent work
    """
    config = _get_config()
    store, forest = _load_taxonomy(config, missing_ok=True)
    with _reported_errors():
        try:
            taxonomy.insert(forest, parent, name, assignable=not category)
        except TagNotFoundError:
            _fail(f"Parent tag '{parent}' does not exist")
        store.save(forest)
    logger.info("Added tag %s (parent=%s, assignable=%s)", name, parent, not category)
    typer.echo(f"Added tag '{name}'")


@manage_app.command("remove")
def manage_remove(
    name: Annotated[str, typer.Argument(help="Tag to remove")],
):
    """
    Remove a tag from the taxonomy.

    Children of the removed tag take its place under its parent.
    Files keep any attribute already set for the tag.
    """
    config = _get_config()
    store, forest = _load_taxonomy(config, missing_ok=True)
    with _reported_errors():
        try:
            promoted = taxonomy.remove(forest, name)
        except TagNotFoundError:
            _fail(f"Cannot remove inexistent tag '{name}'")
        store.save(forest)
    logger.info("Removed tag %s, promoted %d children", name, promoted)
    if promoted:
        typer.echo(f"Removed tag '{name}' ({promoted} child tags moved up)")
    else:
        typer.echo(f"Removed tag '{name}'")


@manage_app.command("list")
def manage_list(
    as_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Print the taxonomy document as JSON",
    )] = False,
):
    """
    Print the tags and their parent-children relationship.

    '(*)' is appended to tags that cannot be assigned.
    """
    config = _get_config()
    _, forest = _load_taxonomy(config, missing_ok=True)
    if as_json:
        typer.echo(json.dumps(forest.to_list(), indent=2, ensure_ascii=False))
        return
    with _reported_errors():
        lines = taxonomy.format_tree(forest)
    for line in lines:
        typer.echo(line)


@app.command()
def init(
    taxonomy_path: Annotated[Optional[Path], typer.Option(
        "--taxonomy",
        help="Where to keep the taxonomy document (saved to the settings file)",
    )] = None,
    namespace: Annotated[Optional[str], typer.Option(
        "--namespace",
        help="xattr namespace for tags, below 'user.' (saved to the settings file)",
    )] = None,
):
    """Create an empty taxonomy, optionally recording custom settings."""
    config = _get_config()
    if taxonomy_path is not None or namespace is not None:
        if taxonomy_path is not None:
            config.taxonomy_path = taxonomy_path.expanduser()
        if namespace is not None:
            try:
                config.namespace = normalize_namespace(namespace)
            except ValueError as e:
                _fail(str(e))
        settings_path = save_config(config, _settings_override)
        typer.echo(f"Wrote settings to {settings_path}")

    store = TaxonomyFile(config.taxonomy_path)
    if store.exists():
        typer.echo(f"Taxonomy already exists at {store.path}")
        return
    with _reported_errors():
        store.save(Forest())
    typer.echo(f"Created empty taxonomy at {store.path}")


# -----------------------------------------------------------------------------

def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(e, context="tagsys CLI")
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()

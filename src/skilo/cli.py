"""CLI application entry point."""

import shutil
import tempfile
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.markup import escape

from skilo.cache.evict import Evictor
from skilo.cache.names import parse_owner_repo
from skilo.cache.paths import CachePaths
from skilo.cache.store import CacheStore, format_age, format_size
from skilo.config.loader import load_config
from skilo.config.schema import SkiloConfig
from skilo.core.errors import SkiloError
from skilo.core.source import GitSource
from skilo.fetch.git import GitFetcher
from skilo.fetch.protocols import SourceFetcher
from skilo.utils.output import (
    configure_logging,
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from skilo.utils.paths import ensure_dir, expand_path

app = typer.Typer(
    name="skilo",
    help="Fetch skills from git repositories and manage the local git cache",
    no_args_is_help=True,
)

# Cache subcommand group
cache_app = typer.Typer(
    name="cache",
    help="Inspect and prune the git cache",
)
app.add_typer(cache_app, name="cache")


def get_fetcher() -> SourceFetcher:
    """Return the fetcher used by the 'fetch' command."""
    return GitFetcher()


def _plural(count: int, singular: str, plural: Optional[str] = None) -> str:
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


def _cache_paths(ctx: typer.Context) -> CachePaths:
    """Resolve cache paths from the loaded configuration, exiting on failure."""
    cfg: SkiloConfig = ctx.obj
    try:
        return CachePaths.from_settings(cfg.cache)
    except SkiloError as e:
        print_error(str(e))
        raise typer.Exit(1)


def _report_skipped(skipped, quiet: bool) -> None:
    if quiet or not skipped:
        return
    print_warning(f"Skipped {_plural(len(skipped), 'entry', 'entries')}:")
    for entry in skipped:
        console.print(f"  • {escape(str(entry.path))}: {escape(entry.reason)}")


def _report_full_eviction(result, quiet: bool) -> None:
    if not quiet:
        print_success(
            f"Removed {_plural(result.repos_removed, 'repository', 'repositories')}, "
            f"{_plural(result.checkouts_removed, 'checkout')} "
            f"([green]{format_size(result.freed)}[/green] freed)"
        )
    _report_skipped(result.skipped, quiet)


def _install_tree(root: Path, dest: Path) -> None:
    """Copy ``root`` (minus ``.git``) to ``dest``, replacing whatever is there.

    The copy is staged next to ``dest`` and only swapped in once complete, so
    a failed copy leaves the previous destination untouched.
    """
    parent = ensure_dir(dest.parent)
    with tempfile.TemporaryDirectory(prefix=f".{dest.name}-", dir=parent) as staging:
        staged = Path(staging) / dest.name
        shutil.copytree(root, staged, ignore=shutil.ignore_patterns(".git"))

        if dest.is_symlink() or dest.is_file():
            dest.unlink()
        elif dest.exists():
            shutil.rmtree(dest)
        staged.rename(dest)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to config file (overrides default search)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
):
    """Load configuration once for every subcommand."""
    configure_logging(verbose)

    try:
        ctx.obj = load_config(config)
    except ValidationError as e:
        print_error("Configuration validation failed:")
        console.print(e)
        raise typer.Exit(1)
    except Exception as e:
        print_error(f"Failed to load config: {e}")
        raise typer.Exit(1)


@cache_app.callback(invoke_without_command=True)
def cache_status(
    ctx: typer.Context,
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output"),
):
    """Show what is in the git cache.

    Lists mirrors in db/ and checkouts in checkouts/ with their sizes.
    """
    if ctx.invoked_subcommand is not None:
        return

    paths = _cache_paths(ctx)

    if not paths.root.exists():
        if not quiet:
            console.print(f"Cache directory: {escape(str(paths.root))} (not created yet)")
        return

    stats = CacheStore(paths).collect()

    console.print(f"Cache directory: [cyan]{escape(str(paths.root))}[/cyan]")
    console.print()

    console.print(
        f"  [bold]db/[/bold]: {_plural(len(stats.repos), 'repository', 'repositories')}, "
        f"{format_size(stats.db_size)}"
    )
    for repo in stats.repos:
        console.print(f"    {escape(repo.name)}")

    if stats.repos and stats.checkouts:
        console.print()

    console.print(
        f"  [bold]checkouts/[/bold]: {_plural(len(stats.checkouts), 'checkout')}, "
        f"{format_size(stats.checkouts_size)}"
    )
    for checkout in stats.checkouts:
        console.print(f"    {escape(checkout.name)} [dim]{format_age(checkout.modified)}[/dim]")

    if stats.repos or stats.checkouts:
        console.print()
        console.print(f"Total: [cyan]{format_size(stats.total_size)}[/cyan]")

    _report_skipped(stats.skipped, quiet)


@cache_app.command("path")
def cache_path(ctx: typer.Context):
    """Print the git cache directory."""
    paths = _cache_paths(ctx)
    typer.echo(str(paths.root))


@cache_app.command("clean")
def cache_clean(
    ctx: typer.Context,
    all_: bool = typer.Option(
        False,
        "--all",
        help="Remove every mirror and checkout",
    ),
    max_age: Optional[int] = typer.Option(
        None,
        "--max-age",
        min=0,
        help="Remove checkouts older than this many days (default from config)",
    ),
    repo: Optional[str] = typer.Option(
        None,
        "--repo",
        help="Remove the mirror and checkouts of one repository URL",
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress informational output"),
):
    """Prune the git cache.

    By default removes checkouts older than the configured maximum age.
    """
    cfg: SkiloConfig = ctx.obj
    paths = _cache_paths(ctx)
    evictor = Evictor(paths)

    if all_ and repo:
        print_error("--all and --repo cannot be combined")
        raise typer.Exit(1)

    if all_:
        if not quiet:
            print_info("Removing all cached data...")
        result = evictor.evict_all()
        _report_full_eviction(result, quiet)
        return

    if repo:
        owner_repo = parse_owner_repo(repo)
        if owner_repo is None:
            print_error(f"Could not determine owner/repo from URL: {repo}")
            raise typer.Exit(1)
        owner, name = owner_repo
        if not quiet:
            print_info(f"Removing cached data for {owner}/{name}...")
        result = evictor.evict_repo(owner, name)
        _report_full_eviction(result, quiet)
        return

    days = cfg.cache.max_age_days if max_age is None else max_age
    if not quiet:
        print_info(f"Removing checkouts older than {days} days...")

    result = evictor.evict_older_than(days)

    if not quiet:
        if result.removed > 0:
            print_success(
                f"Removed {_plural(result.removed, 'checkout')} "
                f"([green]{format_size(result.freed)}[/green] freed)"
            )
        else:
            print_info(f"No checkouts older than {days} days found")
    _report_skipped(result.skipped, quiet)


@app.command()
def fetch(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="Repository URL or owner/repo shorthand"),
    dest: Path = typer.Option(..., "--dest", "-d", help="Directory to copy the fetched files into"),
    branch: Optional[str] = typer.Option(None, "--branch", "-b", help="Branch to fetch"),
    tag: Optional[str] = typer.Option(None, "--tag", help="Tag to fetch"),
    subdir: Optional[str] = typer.Option(
        None, "--subdir", help="Only copy this subdirectory of the repository"
    ),
    force: bool = typer.Option(False, "--force", help="Replace an existing destination"),
):
    """Fetch a repository and copy its files into a directory."""
    cfg: SkiloConfig = ctx.obj
    dest = expand_path(str(dest))

    if cfg.cache.offline:
        print_error("Offline mode is enabled (SKILO_OFFLINE); refusing to fetch")
        raise typer.Exit(1)

    if not force:
        if dest.exists() and not dest.is_dir():
            print_error(f"Destination exists and is not a directory: {dest}")
            print_info("Use --force to replace it")
            raise typer.Exit(1)
        if dest.is_dir() and any(dest.iterdir()):
            print_error(f"Destination is not empty: {dest}")
            print_info("Use --force to replace it")
            raise typer.Exit(1)

    try:
        git_source = GitSource.parse(source, branch=branch, tag=tag, subdir=subdir)
        print_info(f"Fetching {git_source.url}")

        with get_fetcher().fetch(git_source) as result:
            _install_tree(result.root, dest)

    except SkiloError as e:
        print_error(str(e))
        if e.retryable:
            print_info("This looks transient; try again later")
        raise typer.Exit(1)
    except OSError as e:
        print_error(f"Failed to copy files: {e}")
        raise typer.Exit(1)

    print_success(f"Fetched into {dest}")


if __name__ == "__main__":
    app()

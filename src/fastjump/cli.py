"""fastjump CLI: jump to frequently used directories.

Usage (normally through the ``j`` shell function):
    fastjump NEEDLE...            print the best matching directory
    fastjump --complete NEEDLE    print tab-completion entries
    fastjump --add PATH           record a visit to PATH
    fastjump -i [WEIGHT]          increase the current directory's weight
    fastjump -d [WEIGHT]          decrease the current directory's weight
    fastjump --purge              forget directories that no longer exist
    fastjump --stat               list the store with weights
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping
from typing import TYPE_CHECKING

import click

from fastjump.config import PKGNAME, config_home, init_config, load_config
from fastjump.errors import EnvironmentCheckError, FastjumpError
from fastjump.handlers import (
    DEFAULT_DECREASE,
    DEFAULT_INCREASE,
    add_path,
    collect_stats,
    decrease_path,
    format_stats,
    purge,
)
from fastjump.resolver import find_results
from fastjump.store import PathStore

if TYPE_CHECKING:
    from fastjump.config import FastjumpConfig
    from fastjump.handlers import Stats

logger = logging.getLogger("fastjump.cli")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def setup_logging(verbose: int) -> None:
    """-v for INFO, -vv and beyond for DEBUG; warnings are always shown."""
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )


def is_sourced(env: Mapping[str, str]) -> bool:
    value = env.get(f"{PKGNAME.upper()}_SOURCED")
    return value is not None and value not in ("0", "false")


def environment_check(env: Mapping[str, str] | None = None) -> None:
    """Refuse to run unless the shell integration exported FASTJUMP_SOURCED."""
    env = os.environ if env is None else env
    if sys.platform == "win32" or is_sourced(env):
        return
    msg = (
        f"Please source the correct {PKGNAME} file in your shell's startup file. "
        f"For more information, please reinstall {PKGNAME} and read the post "
        "installation instructions."
    )
    raise EnvironmentCheckError(msg)


def _load_cfg() -> FastjumpConfig:
    try:
        return load_config()
    except Exception as exc:
        raise click.ClickException(str(exc)) from exc


def _echo_entry(path: str, weight: float) -> None:
    click.echo(f"{weight:.2f}\t\t{path}")


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("needles", nargs=-1)
@click.option("-a", "--add", "add", metavar="PATH", help="Add a path with the default weight")
@click.option(
    "-i", "--increase", type=float, is_flag=False, flag_value=DEFAULT_INCREASE, default=None,
    metavar="[WEIGHT]", help=f"Increase the current directory weight (default {DEFAULT_INCREASE:g})",
)
@click.option(
    "-d", "--decrease", type=float, is_flag=False, flag_value=DEFAULT_DECREASE, default=None,
    metavar="[WEIGHT]", help=f"Decrease the current directory weight (default {DEFAULT_DECREASE:g})",
)
@click.option("--complete", is_flag=True, help="Used for tab completion")
@click.option("--purge", "do_purge", is_flag=True, help="Remove non-existent paths from the store")
@click.option("-s", "--stat", is_flag=True, help="Show store entries and their weights")
@click.option("--dryrun", is_flag=True, help="Do not write the store")
@click.option("--init-config", "write_config", is_flag=True, help=f"Write a default {PKGNAME}.toml and exit")
@click.option("-v", "--verbose", count=True, help="Verbose mode (-v, -vv)")
@click.version_option(package_name=PKGNAME)
def cli(
    needles: tuple[str, ...],
    add: str | None,
    increase: float | None,
    decrease: float | None,
    complete: bool,
    do_purge: bool,
    stat: bool,
    dryrun: bool,
    write_config: bool,
    verbose: int,
) -> None:
    """Jump to any directory fast and smart."""
    setup_logging(verbose)

    if write_config:
        _write_default_config()
        return

    try:
        environment_check()
    except EnvironmentCheckError as exc:
        raise click.ClickException(str(exc)) from exc

    cfg = _load_cfg()
    cwd = os.getcwd()
    try:
        store = PathStore.load(cfg.store.data_path, cfg.store.backup_path)

        if add is not None:
            _echo_entry(*add_path(store, add, cwd=cwd, dryrun=dryrun))
        elif complete:
            for line in _results(cfg, store, needles, complete=True, cwd=cwd):
                click.echo(line)
        elif decrease is not None:
            _echo_entry(*decrease_path(store, cwd, decrease, dryrun=dryrun))
        elif increase is not None:
            _echo_entry(*add_path(store, cwd, increase, cwd=cwd, dryrun=dryrun))
        elif do_purge:
            removed = purge(store, dryrun=dryrun)
            click.echo(f"Purged {removed} entries.")
        elif stat:
            stats = collect_stats(store, cwd=cwd)
            if sys.stdout.isatty():
                _print_stats_table(stats, cfg)
            else:
                click.echo("\n".join(format_stats(stats, cfg.store.data_path)))
        else:
            for line in _results(cfg, store, needles, complete=False, cwd=cwd):
                click.echo(line)
    except (FastjumpError, OSError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc


def _results(
    cfg: FastjumpConfig,
    store: PathStore,
    needles: tuple[str, ...],
    *,
    complete: bool,
    cwd: str,
) -> list[str]:
    return find_results(
        store,
        list(needles),
        complete,
        cwd=cwd,
        threshold=cfg.match.fuzzy_threshold,
        tab_entries_count=cfg.match.tab_entries_count,
        separator=cfg.match.tab_separator,
    )


def _print_stats_table(stats: Stats, cfg: FastjumpConfig) -> None:
    from rich.console import Console
    from rich.markup import escape as _markup_escape
    from rich.table import Table

    table = Table(title=f"{PKGNAME}: {cfg.store.data_path}", show_header=True, header_style="bold")
    table.add_column("Weight", justify="right", no_wrap=True)
    table.add_column("Path")
    for path, weight in stats.entries:
        table.add_row(f"{weight:.2f}", _markup_escape(path))
    table.add_section()
    table.add_row(f"{stats.total_weight:.2f}", "[dim]total weight[/dim]")
    table.add_row(str(stats.total_entries), "[dim]total entries[/dim]")
    table.add_row(f"{stats.cwd_weight:.2f}", "[dim]current directory weight[/dim]")
    Console().print(table)


def _write_default_config() -> None:
    path = config_home() / PKGNAME / f"{PKGNAME}.toml"
    try:
        init_config(path)
        click.echo(f"Created {path}")
    except FileExistsError:
        click.echo(f"{path} already exists, skipping")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()

"""Install helpers: copy shell integration scripts, remove them again.

Used by `fastjump-install`.  The fastjump executable itself comes from pip;
this only places the scripts that define ``j``, hook directory changes, and
wire up tab completion:

    <install_dir>/etc/profile.d/fastjump.sh          # sourced from the rc file
    <install_dir>/<prefix>/share/fastjump/fastjump.{bash,zsh,fish}
    <zshshare>/_j                                    # zsh completion
"""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import sys
from dataclasses import dataclass
from enum import Enum
from importlib import resources
from pathlib import Path

import click

from fastjump.config import PKGNAME, InstallConfig, data_home, default_install_dir
from fastjump.errors import InstallError

logger = logging.getLogger("fastjump.install")

_ENTRY_SCRIPT = f"{PKGNAME}.sh"
_ZSH_COMPLETION = "_j"
_SYSTEM_PREFIX = "/usr/local"
_SYSTEM_ZSHSHARE = Path("/usr/share/zsh/site-functions")


class Shell(str, Enum):
    BASH = "bash"
    ZSH = "zsh"
    FISH = "fish"


@dataclass(frozen=True)
class ShellScripts:
    """Bundled files for one shell."""

    init_script: str            # copied to share/fastjump
    completion: str | None      # copied to the zsh functions dir
    rcfile: str


SHELLS: dict[Shell, ShellScripts] = {
    Shell.BASH: ShellScripts(f"{PKGNAME}.bash", None, "~/.bashrc"),
    Shell.ZSH: ShellScripts(f"{PKGNAME}.zsh", _ZSH_COMPLETION, "~/.zshrc"),
    Shell.FISH: ShellScripts(f"{PKGNAME}.fish", None, "~/.config/fish/config.fish"),
}


def _scripts_dir() -> Path:
    """Return path to bundled shell scripts."""
    try:
        return Path(str(resources.files("fastjump") / "scripts"))
    except (ModuleNotFoundError, TypeError):
        return Path(__file__).parent / "scripts"


def detect_shell(env: dict[str, str] | None = None) -> str:
    env = dict(os.environ) if env is None else env
    return Path(env.get("SHELL", "")).name


def _is_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


# ---------------------------------------------------------------------------
# Option handling
# ---------------------------------------------------------------------------


def check_opts(*, shell: str, system: bool, force: bool, is_root: bool) -> Shell | None:
    """Validate the environment. Returns the detected shell, if supported."""
    if sys.platform == "win32":
        msg = "Installing shell integration is not supported on Windows."
        raise InstallError(msg)
    supported = {s.value: s for s in Shell}
    if force:
        return supported.get(shell)
    if system and not is_root:
        msg = "Please rerun as root for system-wide installation."
        raise InstallError(msg)
    if shell not in supported:
        msg = f"Unsupported shell: {shell!r}, we currently only support {sorted(supported)}"
        raise InstallError(msg)
    return supported[shell]


def build_install_config(
    *,
    install_dir: str | None = None,
    prefix: str | None = None,
    zshshare: str | None = None,
    system: bool = False,
) -> InstallConfig:
    """Resolve install locations from command-line options."""
    cfg = InstallConfig()
    if install_dir is not None and Path(install_dir) != cfg.install_dir:
        cfg.install_dir = Path(install_dir)
        cfg.custom_install = True
        if not cfg.install_dir.exists():
            msg = f"Destination install directory doesn't exist: {install_dir}"
            raise InstallError(msg)
    if prefix:
        cfg.prefix = prefix
        cfg.custom_install = True
    if zshshare is not None:
        cfg.zshshare_dir = Path(zshshare)
        cfg.custom_install = True
        if not cfg.zshshare_dir.exists():
            msg = f"Specified zshshare directory doesn't exist: {zshshare}"
            raise InstallError(msg)

    if system:
        if cfg.custom_install:
            msg = "Custom paths incompatible with --system option."
            raise InstallError(msg)
        cfg = system_install_config()
    logger.debug("install config: %s", cfg)
    return cfg


def system_install_config() -> InstallConfig:
    return InstallConfig(
        install_dir=Path("/"),
        prefix=_SYSTEM_PREFIX,
        zshshare_dir=_SYSTEM_ZSHSHARE,
    )


# ---------------------------------------------------------------------------
# Filesystem actions (logged, skipped under dry-run)
# ---------------------------------------------------------------------------


def _mkdir(path: Path, dryrun: bool) -> None:
    logger.info("Creating the path %s", path)
    if not dryrun:
        path.mkdir(parents=True, exist_ok=True)


def _copy_in(src: Path, directory: Path, dryrun: bool) -> Path:
    dest = directory / src.name
    logger.info("Copying %s => %s", src, dest)
    if not dryrun:
        shutil.copyfile(src, dest)
    return dest


def _rm(path: Path, dryrun: bool) -> None:
    logger.info("Remove the file %s", path)
    if not dryrun:
        path.unlink(missing_ok=True)


def _rmtree(path: Path, dryrun: bool) -> None:
    logger.info("Remove the whole directory %s", path)
    if not dryrun:
        with contextlib.suppress(FileNotFoundError):
            shutil.rmtree(path)


def _rmdir_if_empty(path: Path, dryrun: bool) -> None:
    if path.is_dir() and not any(path.iterdir()):
        logger.info("Remove the empty directory %s", path)
        if not dryrun:
            path.rmdir()


def _custom_source_snippet(share_dir: Path) -> str:
    target = f"{share_dir}/{PKGNAME}.${{shell}}"
    return f"\n# check custom install\nif [ -s {target} ]; then\n    source {target}\nfi\n"


# ---------------------------------------------------------------------------
# Install / uninstall
# ---------------------------------------------------------------------------


def installed_files(cfg: InstallConfig) -> list[Path]:
    files = [cfg.etc_dir / _ENTRY_SCRIPT]
    files.extend(cfg.share_dir / scripts.init_script for scripts in SHELLS.values())
    files.append(cfg.zsh_functions_dir / _ZSH_COMPLETION)
    return files


def install(cfg: InstallConfig, shell: Shell | None, *, dryrun: bool = False) -> str:
    """Copy every bundled script into place. Returns the post-install message."""
    logger.info("Installing %s to %s%s...", PKGNAME, cfg.install_dir, " (DRYRUN)" if dryrun else "")
    scripts = _scripts_dir()

    for directory in (cfg.etc_dir, cfg.share_dir, cfg.zsh_functions_dir):
        _mkdir(directory, dryrun)

    entry = _copy_in(scripts / _ENTRY_SCRIPT, cfg.etc_dir, dryrun)
    for shell_scripts in SHELLS.values():
        _copy_in(scripts / shell_scripts.init_script, cfg.share_dir, dryrun)
        if shell_scripts.completion:
            _copy_in(scripts / shell_scripts.completion, cfg.zsh_functions_dir, dryrun)

    if cfg.custom_install and not dryrun:
        logger.debug("appending custom install location to %s", entry)
        with entry.open("a") as f:
            f.write(_custom_source_snippet(cfg.share_dir))

    return post_install_message(cfg, shell)


def post_install_message(cfg: InstallConfig, shell: Shell | None) -> str:
    if shell is Shell.FISH:
        script = cfg.share_dir / SHELLS[Shell.FISH].init_script
        source_line = f"if test -f {script}; . {script}; end"
    else:
        script = cfg.etc_dir / _ENTRY_SCRIPT
        source_line = f"[[ -s {script} ]] && source {script}"

    if shell is None:
        rcfile = "your shell's startup file"
    elif shell is Shell.BASH and sys.platform == "darwin":
        rcfile = "~/.profile"
    else:
        rcfile = SHELLS[shell].rcfile

    lines = [f"Please manually add the following line(s) to {rcfile}:", "", f"\t{source_line}"]
    if shell is Shell.ZSH:
        lines += ["", "\tautoload -U compinit && compinit -u"]
    lines += ["", f"Please restart terminal(s) before running {PKGNAME}."]
    return "\n".join(lines)


def uninstall(
    cfg: InstallConfig,
    *,
    purge: bool = False,
    dryrun: bool = False,
    is_root: bool = False,
    data_dir: Path | None = None,
) -> None:
    """Remove default, custom and system installations; optionally user data."""
    logger.info("Uninstalling %s%s...", PKGNAME, " (DRYRUN)" if dryrun else "")

    default_dir = default_install_dir()
    if default_dir.exists():
        logger.info("Found default installation...")
        _rmtree(default_dir, dryrun)

    if cfg.custom_install and cfg.install_dir.exists():
        logger.info("Found custom installation...")
        _remove_files(cfg, dryrun)

    system = system_install_config()
    if system.share_dir.exists():
        logger.info("Found system installation...")
        if not is_root:
            msg = "Please rerun as root for system-wide uninstall, aborting..."
            raise InstallError(msg)
        _remove_files(system, dryrun)

    if purge:
        user_data = data_dir or data_home() / PKGNAME
        if user_data.exists():
            logger.info("Found user data...")
            _rmtree(user_data, dryrun)


def _remove_files(cfg: InstallConfig, dryrun: bool) -> None:
    for path in installed_files(cfg):
        _rm(path, dryrun)
    for directory in (cfg.share_dir, cfg.etc_dir, cfg.zsh_functions_dir):
        _rmdir_if_empty(directory, dryrun)


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("-i", "--install", "do_install", is_flag=True, help="Install the shell integration")
@click.option("-u", "--uninstall", "do_uninstall", is_flag=True, help="Uninstall the shell integration")
@click.option("--purge", is_flag=True, help="Remove the user database as well (with --uninstall)")
@click.option("--install-dir", default=None, metavar="DIRECTORY", help="Install into DIRECTORY")
@click.option("--prefix", default=None, metavar="DIRECTORY", help="Prefix for share/ under the install dir")
@click.option("--zshshare", default=None, metavar="DIRECTORY", help="Destination of the zsh completion")
@click.option("-s", "--system", is_flag=True, help="Install system wide for all users")
@click.option("-f", "--force", is_flag=True, help="Skip the root user and shell type checks")
@click.option("-n", "--dryrun", is_flag=True, help="Only log what would be done")
@click.option("-v", "--verbose", count=True, help="Verbose mode (-v, -vv)")
def main(
    do_install: bool,
    do_uninstall: bool,
    purge: bool,
    install_dir: str | None,
    prefix: str | None,
    zshshare: str | None,
    system: bool,
    force: bool,
    dryrun: bool,
    verbose: int,
) -> None:
    """Install or uninstall fastjump's shell integration."""
    from fastjump.cli import setup_logging

    # Every action is logged at INFO, so show it by default.
    setup_logging(verbose + 1)

    if do_install == do_uninstall:
        raise click.UsageError("Pass exactly one of --install or --uninstall.")

    try:
        shell = check_opts(shell=detect_shell(), system=system, force=force, is_root=_is_root())
        cfg = build_install_config(install_dir=install_dir, prefix=prefix, zshshare=zshshare, system=system)
        if do_install:
            click.echo(install(cfg, shell, dryrun=dryrun))
        else:
            uninstall(cfg, purge=purge, dryrun=dryrun, is_root=_is_root())
    except (InstallError, OSError) as exc:
        raise click.ClickException(str(exc)) from exc


if __name__ == "__main__":
    main()

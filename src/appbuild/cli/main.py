"""Main entry point for the appbuild CLI.

Commands:
    appbuild build: Create an optimized production build

Example:
    $ appbuild --help
    $ appbuild --version
    $ appbuild build --stats
"""

from __future__ import annotations

import sys
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as get_version

import click

from appbuild import __version__
from appbuild.cli.build import build_command


def _get_version() -> str:
    """Get the appbuild package version.

    Returns:
        Version string from package metadata, or the source version if the
        package is not installed.
    """
    try:
        return get_version("appbuild")
    except PackageNotFoundError:
        return __version__


@click.group(
    name="appbuild",
    help="appbuild - Production builds for single-page applications.",
    epilog="Use 'appbuild <command> --help' for command-specific help.",
    context_settings={
        "help_option_names": ["-h", "--help"],
    },
)
@click.version_option(
    version=_get_version(),
    prog_name="appbuild",
    message="%(prog)s %(version)s",
)
def cli() -> None:
    """Root command group for the appbuild CLI."""


cli.add_command(build_command)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the appbuild CLI.

    Args:
        argv: Command-line arguments (uses sys.argv if None).
    """
    try:
        cli(args=argv, standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        click.echo("Aborted!", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()

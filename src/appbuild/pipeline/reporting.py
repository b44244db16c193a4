"""Console reporting for build outcomes.

Everything the user reads after a build is printed from here, on stdout:

- success: warnings (if any), gzip sizes with growth labels, bundle-size
  advice and hosting guidance;
- failure: exactly one error, with the CI escalation note, the lenient
  type-check header or the truncation note where they apply.
"""

from __future__ import annotations

import re
from pathlib import Path

import click

from appbuild.config import PipelineConfig
from appbuild.errors import MissingRequiredFileError
from appbuild.pipeline.inventory import SizeSnapshot, diff
from appbuild.pipeline.outcome import BuildFailure, BuildOutcome, BuildSuccess, FailureKind

WARN_AFTER_BUNDLE_GZIP_SIZE = 512 * 1024
WARN_AFTER_CHUNK_GZIP_SIZE = 1024 * 1024
FIFTY_KILOBYTES = 50 * 1024

REPORTED_EXTENSIONS = (".js", ".css")
DEPLOYMENT_URL = "https://cra.link/deployment"
MINIFY_URL = "https://cra.link/failed-to-minify"

_TERSER_LOCATION = re.compile(r"(.+)\[(.+):(.+),(.+)\]\[.+\]")

_SIZE_UNITS = ("B", "kB", "MB", "GB", "TB")


def format_size(size: int) -> str:
    """Human-readable size in decimal units.

    Example:
        >>> format_size(0), format_size(1536), format_size(-2_500_000)
        ('0 B', '1.54 kB', '-2.5 MB')
    """
    value = float(abs(size))
    unit = 0
    while value >= 1000 and unit < len(_SIZE_UNITS) - 1:
        value /= 1000
        unit += 1
    text = f"{value:.2f}".rstrip("0").rstrip(".") if unit else str(int(value))
    sign = "-" if size < 0 else ""
    return f"{sign}{text} {_SIZE_UNITS[unit]}"


def difference_label(current: int, previous: int | None) -> str:
    """Styled size-change label: red above 50 kB growth, yellow below, green for shrinkage."""
    if previous is None:
        return ""
    difference = current - previous
    size = format_size(difference)
    if difference >= FIFTY_KILOBYTES:
        return click.style(f"+{size}", fg="red")
    if difference > 0:
        return click.style(f"+{size}", fg="yellow")
    if difference < 0:
        return click.style(size, fg="green")
    return ""


def _is_main_bundle(path: str) -> bool:
    return Path(path).name.startswith("main.")


def print_file_sizes(
    previous: SizeSnapshot,
    current: SizeSnapshot,
    output_folder: str,
) -> None:
    """Print gzip sizes of the JS/CSS outputs, largest first.

    Args:
        previous: Baseline snapshot taken before the output was cleared.
        current: Snapshot of the finished output directory.
        output_folder: Output directory as shown to the user.
    """
    rows: list[tuple[str, int, str, str]] = []
    for delta in diff(previous, current):
        if delta.after is None or not delta.path.endswith(REPORTED_EXTENSIONS):
            continue
        size = delta.after.gzip_bytes
        label = difference_label(size, delta.before.gzip_bytes if delta.before else None)
        rows.append((delta.path, size, format_size(size), label))
    rows.sort(key=lambda row: row[1], reverse=True)

    longest_size = max(
        (len(click.unstyle(f"{text} {label}" if label else text)) for _, _, text, label in rows),
        default=0,
    )

    suggest_splitting = False
    for path, size, text, label in rows:
        is_main = _is_main_bundle(path)
        limit = WARN_AFTER_BUNDLE_GZIP_SIZE if is_main else WARN_AFTER_CHUNK_GZIP_SIZE
        is_large = path.endswith(".js") and size > limit
        suggest_splitting = suggest_splitting or is_large

        size_label = f"{text} {label}" if label else text
        padding = " " * (longest_size - len(click.unstyle(size_label)))
        shown = click.style(size_label, fg="yellow") if is_large else size_label
        directory, _, name = path.rpartition("/")
        folder = f"{output_folder}/{directory}/" if directory else f"{output_folder}/"
        location = click.style(folder, dim=True)
        click.echo(f"  {shown}{padding}  {location}{click.style(name, fg='cyan')}")

    if suggest_splitting:
        click.echo()
        click.echo(click.style("The bundle size is significantly larger than recommended.", fg="yellow"))
        click.echo(
            click.style("Consider reducing it with code splitting: https://goo.gl/9VhYWB", fg="yellow")
        )
        click.echo(
            click.style("You can also analyze the project dependencies: https://goo.gl/LeUzfb", fg="yellow")
        )


def _quoted(text: str) -> str:
    return f'"{text}"'


def _print_base_message(output_folder: str, hosting_location: str | None) -> None:
    location = click.style(hosting_location or "the server root", fg="green")
    click.echo(f"The project was built assuming it is hosted at {location}.")
    click.echo(
        f"You can control this with the {click.style('homepage', fg='green')} field in your "
        f"{click.style('package.json', fg='cyan')}."
    )
    if not hosting_location:
        click.echo("For example, add this to build it for GitHub Pages:")
        click.echo()
        click.echo(
            f"  {click.style(_quoted('homepage'), fg='green')} "
            f"{click.style(':', fg='cyan')} "
            f"{click.style(_quoted('http://myname.github.io/myapp'), fg='green')}"
            f"{click.style(',', fg='cyan')}"
        )
    click.echo()
    click.echo(f"The {click.style(output_folder, fg='cyan')} folder is ready to be deployed.")


def _print_deploy_instructions(
    public_url: str,
    output_folder: str,
    has_deploy_script: bool,
    use_yarn: bool,
) -> None:
    tool = "yarn" if use_yarn else "npm"
    click.echo(f"To publish it at {click.style(public_url, fg='green')} , run:")
    click.echo()
    if not has_deploy_script:
        if use_yarn:
            click.echo(f"  {click.style('yarn', fg='cyan')} add --dev gh-pages")
        else:
            click.echo(f"  {click.style('npm', fg='cyan')} install --save-dev gh-pages")
        click.echo()
        click.echo(f"Add the following script in your {click.style('package.json', fg='cyan')}.")
        click.echo()
        click.echo(f"    {click.style('// ...', dim=True)}")
        click.echo(f"    {click.style(_quoted('scripts'), fg='yellow')}: {{")
        click.echo(f"      {click.style(_quoted('// ...'), dim=True)}")
        click.echo(
            f"      {click.style(_quoted('predeploy'), fg='green')}: "
            f"{click.style(_quoted(f'{tool} run build'), fg='cyan')},"
        )
        click.echo(
            f"      {click.style(_quoted('deploy'), fg='green')}: "
            f"{click.style(_quoted(f'gh-pages -d {output_folder}'), fg='cyan')}"
        )
        click.echo("    }")
        click.echo()
        click.echo("Then run:")
        click.echo()
    click.echo(f"  {click.style(tool, fg='cyan')} run deploy")


def _print_static_server_instructions(output_folder: str, use_yarn: bool) -> None:
    click.echo("You may serve it with a static server:")
    click.echo()
    if use_yarn:
        click.echo(f"  {click.style('yarn', fg='cyan')} global add serve")
    else:
        click.echo(f"  {click.style('npm', fg='cyan')} install -g serve")
    click.echo(f"  {click.style('serve', fg='cyan')} -s {output_folder}")


def print_hosting_instructions(config: PipelineConfig, output_folder: str) -> None:
    """Print where the build expects to be hosted and how to deploy it.

    Args:
        config: Pipeline configuration (homepage, public path, package manager).
        output_folder: Output directory as shown to the user.
    """
    public_path = config.public_url_or_path
    homepage = config.homepage

    if homepage and ".github.io/" in homepage:
        _print_base_message(output_folder, public_path)
        click.echo()
        _print_deploy_instructions(homepage, output_folder, config.has_deploy_script, config.use_yarn)
    elif public_path != "/":
        _print_base_message(output_folder, public_path)
    else:
        _print_base_message(output_folder, homepage)
        click.echo()
        _print_static_server_instructions(output_folder, config.use_yarn)

    click.echo()
    click.echo("Find out more about deployment here:")
    click.echo()
    click.echo(f"  {click.style(DEPLOYMENT_URL, fg='yellow')}")
    click.echo()


def output_folder_label(config: PipelineConfig) -> str:
    """Output directory relative to the current directory when possible."""
    try:
        return config.output_dir.relative_to(Path.cwd()).as_posix()
    except ValueError:
        return str(config.output_dir)


def report_success(
    outcome: BuildSuccess,
    config: PipelineConfig,
    current_sizes: SizeSnapshot,
) -> None:
    """Print the report of a successful build.

    Args:
        outcome: The successful outcome.
        config: Pipeline configuration.
        current_sizes: Snapshot of the finished output directory.
    """
    if outcome.warnings:
        click.echo(click.style("Compiled with warnings.\n", fg="yellow"))
        click.echo("\n\n".join(warning.message for warning in outcome.warnings))
        click.echo(
            f"\nSearch for the {click.style('keywords', fg='yellow', underline=True)} "
            "to learn more about each warning."
        )
        click.echo(
            f"To ignore, add {click.style('// eslint-disable-next-line', fg='cyan')} "
            "to the line before.\n"
        )
    else:
        click.echo(click.style("Compiled successfully.\n", fg="green"))

    output_folder = output_folder_label(config)
    click.echo("File sizes after gzip:\n")
    print_file_sizes(outcome.previous_sizes, current_sizes, output_folder)
    click.echo()
    print_hosting_instructions(config, output_folder)


def print_build_error(failure: BuildFailure) -> None:
    """Print the single error of a failed build."""
    message = failure.message or repr(failure.cause)

    if "from Terser" in message:
        # e.g. "static/js/main.js from Terser\nUnexpected token [./src/App.js:12,0][static/js/main.js:1,4]"
        match = _TERSER_LOCATION.search(message)
        if match:
            problem_path, line, column = match.group(2, 3, 4)
            location = f"{problem_path}:{line}" if column == "0" else f"{problem_path}:{line}:{column}"
            click.echo("Failed to minify the code from this file: \n")
            click.echo(click.style(f"\t{location}", fg="yellow") + "\n")
        else:
            click.echo(f"Failed to minify the bundle. {message.splitlines()[0]}\n")
        click.echo(f"Read more here: {MINIFY_URL}\n")
    else:
        click.echo(message + "\n")

    if failure.omitted_error_count:
        noun = "error" if failure.omitted_error_count == 1 else "errors"
        click.echo(
            click.style(
                f"Only the first error is shown; {failure.omitted_error_count} more {noun} "
                "were reported and are usually caused by it.\n",
                dim=True,
            )
        )


def report_failure(failure: BuildFailure, config: PipelineConfig) -> None:
    """Print the report of a failed build.

    Args:
        failure: The failed outcome.
        config: Pipeline configuration.
    """
    if failure.kind is FailureKind.MISSING_REQUIRED_FILE:
        click.echo(click.style("Could not find a required file.", fg="red"))
        if isinstance(failure.cause, MissingRequiredFileError):
            click.echo(click.style("  Name: ", fg="red") + click.style(failure.cause.name, fg="cyan"))
            click.echo(
                click.style("  Searched in: ", fg="red")
                + click.style(str(failure.cause.directory), fg="cyan")
            )
        else:
            click.echo(click.style(f"  {failure.message}", fg="red"))
        return

    if failure.kind is FailureKind.MISSING_BROWSER_TARGETS:
        click.echo(click.style(failure.message, fg="red"))
        return

    if failure.kind is FailureKind.CI_WARNING_ESCALATION:
        click.echo(
            click.style(
                "\nTreating warnings as errors because process.env.CI = true.\n"
                "Most CI servers set it automatically.\n",
                fg="yellow",
            )
        )

    if failure.kind.from_compiler and config.tsc_lenient_mode:
        click.echo(
            click.style(
                "Compiled with the following type errors "
                "(you may want to check these before deploying your app):\n",
                fg="yellow",
            )
        )
    else:
        click.echo(click.style("Failed to compile.\n", fg="red"))
    print_build_error(failure)


def report(
    outcome: BuildOutcome,
    config: PipelineConfig,
    current_sizes: SizeSnapshot | None = None,
) -> None:
    """Print the report for any build outcome."""
    if isinstance(outcome, BuildSuccess):
        report_success(outcome, config, current_sizes or {})
    else:
        report_failure(outcome, config)


__all__ = [
    "WARN_AFTER_BUNDLE_GZIP_SIZE",
    "WARN_AFTER_CHUNK_GZIP_SIZE",
    "difference_label",
    "format_size",
    "print_build_error",
    "print_file_sizes",
    "print_hosting_instructions",
    "report",
    "report_failure",
    "report_success",
]

"""CLI utilities for pytest-silk documents.

`check` parses documents and lists their requests; `run` executes them
against a server outside of a pytest session.
"""

from logging import DEBUG, INFO, basicConfig
from pathlib import Path

from click import ClickException, argument, echo, group, option
from click import Path as PathParam

from pytest_silk.config import FailurePolicy, RunnerSettings
from pytest_silk.core import DocumentParser, Runner
from pytest_silk.errors import SilkError

InputFilepath = PathParam(
    exists=True,
    dir_okay=False,
    readable=True,
    path_type=Path,
)


@group(help='Command-line utilities for pytest-silk documents.')
def cli() -> None:
    """Root CLI group for pytest-silk tools."""
    return None


@cli.command(
    name='check',
    help='Parse documents and list the requests they declare.',
)
@option(
    '--strict-values',
    is_flag=True,
    default=False,
    help='Reject expectation values that are not valid JSON literals.',
)
@argument('files', nargs=-1, required=True, type=InputFilepath)
def check_documents(files: tuple[Path, ...], strict_values: bool) -> None:
    """Parse documents and print a summary.

    Args:
        files: Document files.
        strict_values: Whether bare expectation values are rejected.
    """
    parser = DocumentParser(strict_values=strict_values)

    try:
        groups = parser.parse_files(*files)
    except SilkError as error:
        raise ClickException(str(error)) from error

    for document in groups:
        echo(f'{document.filename}: {document.title or "(untitled)"}')
        for request in document.requests:
            echo(f'  {request.line}: {request} ({len(request.expected_details)} expectations)')


@cli.command(
    name='run',
    help='Run documents against a server.',
)
@option(
    '-u', '--url',
    envvar='SILK_ROOT_URL',
    required=True,
    help='Root URL prepended to every request path.',
)
@option(
    '--continue', 'keep_going',
    is_flag=True,
    default=False,
    help='Run every request even after a failure.',
)
@option(
    '--strict-values',
    is_flag=True,
    default=False,
    help='Reject expectation values that are not valid JSON literals.',
)
@option(
    '-v', '--verbose',
    is_flag=True,
    default=False,
    help='Trace every request sent.',
)
@argument('files', nargs=-1, required=True, type=InputFilepath)
def run_documents(files: tuple[Path, ...], url: str, keep_going: bool,
                  strict_values: bool, verbose: bool) -> None:
    """Run documents and exit with a non-zero code on failures.

    Args:
        files: Document files.
        url: Root URL of the server.
        keep_going: Whether a failed request does not stop the run.
        strict_values: Whether bare expectation values are rejected.
        verbose: Whether requests are traced.
    """
    basicConfig(level=DEBUG if verbose else INFO, format='%(message)s')

    settings = RunnerSettings(
        root_url=url,
        policy=FailurePolicy.CONTINUE if keep_going else FailurePolicy.ABORT,
        strict_values=strict_values,
    )

    try:
        with Runner.from_settings(settings) as runner:
            report = runner.run_files(*files)
    except SilkError as error:
        raise ClickException(str(error)) from error

    failures = len(report.failures)
    echo(f'{len(report.outcomes)} requests, {failures} failed')

    if failures:
        raise SystemExit(1)


if __name__ == '__main__':
    cli()

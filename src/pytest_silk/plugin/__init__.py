"""Pytest plugin for collecting and running Markdown API documents.

This module integrates the document runner with pytest by:
- registering custom command-line options;
- resolving runner settings and a shared `DocumentParser` instance;
- collecting Markdown files as executable test specifications.

Markdown files matching the pattern `test_*.md` are automatically
collected and parsed into pytest test items.
"""

from re import match
from typing import TYPE_CHECKING

from .document import TestDocument

if TYPE_CHECKING:
    from pathlib import Path

if TYPE_CHECKING:
    from _pytest.config import Config
    from _pytest.config.argparsing import Parser
    from _pytest.nodes import Node


def pytest_addoption(parser: 'Parser') -> None:
    """Register pytest command-line options for pytest-silk.

    Args:
        parser: Pytest argument parser.
    """
    group = parser.getgroup('silk', 'Markdown API documents')
    group.addoption(
        '--silk-url',
        action='store',
        dest='silk_url',
        default=None,
        help=(
            'Root URL prepended to every documented request path. '
            'Defaults to the SILK_ROOT_URL environment variable; '
            'documents are skipped when neither is set.'
        ),
    )
    group.addoption(
        '--silk-continue',
        action='store_true',
        dest='silk_continue',
        default=False,
        help=(
            'Keep running the remaining requests of a document after '
            'a request failed instead of stopping at the first failure.'
        ),
    )
    group.addoption(
        '--silk-strict-values',
        action='store_true',
        dest='silk_strict_values',
        default=False,
        help=(
            'Reject expectation values that are not valid JSON literals '
            '(for example unquoted strings).'
        ),
    )


def pytest_configure(config: 'Config') -> None:
    """Configure pytest-silk integration.

    This hook resolves `RunnerSettings` from the command line and the
    environment and attaches them, with a shared `DocumentParser`, to
    the pytest configuration object.

    Args:
        config: Pytest configuration object.
    """
    from pytest_silk.config import FailurePolicy, RunnerSettings  # noqa: PLC0415
    from pytest_silk.core import DocumentParser  # noqa: PLC0415

    overrides: dict[str, object] = {}
    if url := config.getoption('--silk-url', default=None):
        overrides['root_url'] = url
    if config.getoption('--silk-continue', default=False):
        overrides['policy'] = FailurePolicy.CONTINUE
    if config.getoption('--silk-strict-values', default=False):
        overrides['strict_values'] = True

    settings = RunnerSettings(**overrides)  # type: ignore[arg-type]

    config.silk_settings = settings  # type: ignore[attr-defined]
    config.silk_parser = DocumentParser(  # type: ignore[attr-defined]
        strict_values=settings.strict_values,
    )


def pytest_collect_file(parent: 'Node', file_path: 'Path') -> TestDocument | None:
    """Collect Markdown API documents.

    Files matching the pattern `test_*.md` are treated as executable
    documents and collected using `TestDocument`.

    Args:
        parent: Parent pytest collection node.
        file_path: Path to the file being considered.

    Returns:
        A `TestDocument` collector if the file matches, otherwise ``None``.
    """
    if match(r'^test_.+\.md$', file_path.name):
        return TestDocument.from_parent(
            parent,
            path=file_path,
        )

    return None

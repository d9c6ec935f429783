"""Pytest item running one parsed document."""

from typing import TYPE_CHECKING

import pytest

from pytest_silk.core import Runner
from pytest_silk.errors import SilkError

if TYPE_CHECKING:
    from typing import Any

if TYPE_CHECKING:
    from _pytest._code.code import ExceptionInfo, TerminalRepr

if TYPE_CHECKING:
    from pytest_silk.config import RunnerSettings
    from pytest_silk.schema import Group


class TestGroup(pytest.Item):
    """Pytest item executing the requests of a single document.

    Requests run sequentially in document order against the configured
    root URL. The item fails with the diagnostics of failed requests.
    """

    __test__ = False

    def __init__(self, *,
                 group: 'Group',
                 settings: 'RunnerSettings',
                 **kwargs: 'Any') -> None:
        """Initialize a pytest item backed by a parsed group.

        Args:
            group: Parsed document.
            settings: Runner settings of the session.
            **kwargs: Keyword pytest.Item arguments.
        """
        super().__init__(**kwargs)

        self.group = group
        self.settings = settings

    def runtest(self) -> None:
        """Run the document."""
        if not self.settings.root_url:
            pytest.skip('root URL is not configured (use --silk-url or SILK_ROOT_URL)')

        with Runner.from_settings(self.settings) as runner:
            report = runner.run_group(self.group)

        report.raise_for_failures()

    def repr_failure(self, excinfo: 'ExceptionInfo[BaseException]',
                     style: 'Any' = None) -> 'str | TerminalRepr':
        """Show diagnostics instead of a traceback for document failures."""
        if isinstance(excinfo.value, (AssertionError, SilkError)):
            return str(excinfo.value)

        return super().repr_failure(excinfo, style=style)

    def reportinfo(self) -> tuple['Any', int | None, str]:
        """Location of the item in reports."""
        return self.path, None, f'{self.name} ({len(self.group.requests)} requests)'

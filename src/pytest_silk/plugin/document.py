"""Pytest collector for Markdown API documents.

Each collected file is parsed using the session `DocumentParser` into
a single `Group`, which becomes one `TestGroup` item. Parse errors fail
the collection of that file.
"""

from typing import TYPE_CHECKING

import pytest

from .case import TestGroup

if TYPE_CHECKING:
    from collections.abc import Iterable


class TestDocument(pytest.File):
    """Pytest file collector for Markdown API documents."""

    __test__ = False

    def collect(self) -> 'Iterable[TestGroup]':
        """Collect the document as one test item.

        Returns:
            Iterable with a single `TestGroup`.

        Raises:
            SilkSchemaError: If the document is malformed.
        """
        group = self.config.silk_parser.parse_file(self.path)  # type: ignore[attr-defined]

        yield TestGroup.from_parent(
            self,
            name=self.path.stem,
            group=group,
            settings=self.config.silk_settings,  # type: ignore[attr-defined]
        )

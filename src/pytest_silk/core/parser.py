"""Markdown document parser.

This module turns a Markdown document into a `Group` of executable
requests. The grammar is line based:

- the first `#` heading is the document title;
- a `##` heading declares a request line, `METHOD /path`;
- backticked bullets declare headers (`Key: value`) and query parameters
  (`?key=value`) of the request and, after the `===` separator, its
  expected response details;
- a fenced block is the request body, or after the separator the
  expected response body.

Everything else is documentation and is ignored.
"""

from glob import glob
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import ValidationError

from pytest_silk.errors import DocumentSyntaxError, SilkSchemaError, ValueSyntaxError
from pytest_silk.names import (
    BULLET_PATTERN,
    DETAIL_PATTERN,
    FENCE_PATTERN,
    HEADING_PATTERN,
    PARAM_PATTERN,
    REQUEST_PATTERN,
    SEPARATOR_PATTERN,
)
from pytest_silk.schema import Block, Detail, Group, Line, Request
from pytest_silk.values import parse_value

from .lookups import DataLookup

if TYPE_CHECKING:
    from collections.abc import Iterator
    from io import TextIOBase
    from os import PathLike
    from re import Pattern

DEFAULT_FILENAME = '<unicode string>'

TITLE_LEVEL = 1
REQUEST_LEVEL = 2

FENCE = '```'
BACKTICK = '`'


class RequestDraft:
    """Mutable accumulator for a request being parsed."""

    def __init__(self, method: str, path: str, line: int) -> None:
        self.method = method
        self.path = path
        self.line = line

        self.details: list[Detail] = []
        self.params: list[Detail] = []
        self.expected_details: list[Line] = []

        self.body: Block | None = None
        self.expected_body: Block | None = None

        self.separated = False

    def add_block(self, block: Block, filename: str) -> None:
        """Attach a fenced block to the current half of the request."""
        if not self.separated:
            if self.body is not None:
                raise DocumentSyntaxError.at('Request body is already declared', filename, block.number)
            self.body = block
        else:
            if self.expected_body is not None:
                raise DocumentSyntaxError.at('Expected body is already declared', filename, block.number)
            self.expected_body = block

    def build(self) -> Request:
        """Freeze the draft into a request."""
        return Request(
            method=self.method,
            path=self.path,
            line=self.line,
            details=tuple(self.details),
            params=tuple(self.params),
            body=self.body,
            expected_body=self.expected_body,
            expected_details=tuple(self.expected_details),
        )


class DocumentParser:
    """Parser of Markdown API documents.

    The parser is stateless between documents; a single instance may be
    shared by a whole test session.
    """

    def __init__(self, strict_values: bool = False) -> None:
        """Initialize the document parser.

        Args:
            strict_values: Whether expectation values that are not valid
                JSON literals are rejected instead of being compared as
                bare strings.
        """
        self.strict_values = strict_values

    def parse(self, content: 'TextIOBase | str', filename: str | None = None) -> Group:
        """Parse a document into a group of requests.

        Args:
            content: Document text or a file-like object.
            filename: Name used in diagnostics.

        Returns:
            The parsed group.

        Raises:
            DocumentSyntaxError: If the document structure is malformed.
            ValueSyntaxError: If a literal value is malformed.
        """
        if not isinstance(content, str):
            if filename is None:
                filename = getattr(content, 'name', None)
            content = content.read()

        filename = filename or DEFAULT_FILENAME

        title: str | None = None
        requests: list[Request] = []
        draft: RequestDraft | None = None

        lines = content.splitlines()
        numbered = enumerate(lines, start=1)

        for number, text in numbered:
            if FENCE_PATTERN.match(text):
                block = self._read_block(number, numbered, filename)
                if draft is not None:
                    draft.add_block(block, filename)
                continue

            if SEPARATOR_PATTERN.match(text):
                if draft is None:
                    raise DocumentSyntaxError.at('Separator outside of a request', filename, number, text)
                if draft.separated:
                    raise DocumentSyntaxError.at('Separator is already declared', filename, number, text)
                draft.separated = True
                continue

            if heading := HEADING_PATTERN.match(text):
                level = len(heading['level'])
                if level == TITLE_LEVEL and title is None:
                    title = heading['text']
                elif level == REQUEST_LEVEL:
                    if draft is not None:
                        requests.append(self._build(draft, filename))
                    draft = self._start_request(heading['text'], number, filename)
                continue

            if draft is not None and (bullet := BULLET_PATTERN.match(text)):
                self._read_bullet(draft, bullet['text'], number, filename)

        if draft is not None:
            requests.append(self._build(draft, filename))

        return Group(
            filename=filename,
            title=title,
            requests=tuple(requests),
        )

    def parse_file(self, path: 'str | PathLike[str]') -> Group:
        """Parse a document file.

        Args:
            path: Path to the document.

        Returns:
            The parsed group.
        """
        filepath = Path(path)
        with filepath.open('rt', encoding='utf-8') as content:
            return self.parse(content, filename=str(path))

    def parse_files(self, *paths: 'str | PathLike[str]') -> tuple[Group, ...]:
        """Parse several document files.

        Parsing stops at the first failing document: either all groups
        are returned or an error is raised.

        Args:
            paths: Paths to the documents.

        Returns:
            Parsed groups in the given order.
        """
        return tuple(self.parse_file(path) for path in paths)

    def parse_glob(self, pattern: str) -> tuple[Group, ...]:
        """Parse all document files matching a glob pattern.

        Args:
            pattern: Glob pattern, `**` is supported.

        Returns:
            Parsed groups in sorted filename order.
        """
        return self.parse_files(*sorted(glob(pattern, recursive=True)))

    @staticmethod
    def _read_block(opening: int, numbered: 'Iterator[tuple[int, str]]',
                    filename: str) -> Block:
        """Consume a fenced block up to its closing fence.

        Args:
            opening: Line number of the opening fence.
            numbered: Iterator over the remaining numbered lines.
            filename: Name used in diagnostics.

        Returns:
            The block content.

        Raises:
            DocumentSyntaxError: If the block is never closed.
        """
        content: list[str] = []
        for _, text in numbered:
            if text.strip() == FENCE:
                return Block(number=opening, lines=tuple(content))
            content.append(text)

        raise DocumentSyntaxError.at('Unterminated fenced block', filename, opening)

    @staticmethod
    def _start_request(text: str, number: int, filename: str) -> RequestDraft:
        """Start a request from a level-2 heading."""
        match = REQUEST_PATTERN.match(text)
        if not match:
            raise DocumentSyntaxError.at(
                'Malformed request line, expected `METHOD /path`',
                filename,
                number,
                text,
            )

        return RequestDraft(match['method'], match['path'], number)

    def _read_bullet(self, draft: RequestDraft, text: str,
                     number: int, filename: str) -> None:
        """Parse a detail bullet into the current request.

        Bullets not starting with a backtick are documentation.
        Anything after the closing backtick is a comment.
        """
        if not text.startswith(BACKTICK):
            return

        end = text.find(BACKTICK, 1)
        if end < 0:
            raise DocumentSyntaxError.at('Unclosed backtick', filename, number, text)

        token = text[1:end].strip()

        try:
            if draft.separated:
                draft.expected_details.append(Line(
                    number=number,
                    detail=self._expectation(token),
                ))
            elif token.startswith('?'):
                draft.params.append(self._detail(token, PARAM_PATTERN, 'query parameter'))
            else:
                draft.details.append(self._detail(token, DETAIL_PATTERN, 'header'))

        except SilkSchemaError as error:
            raise error.locate(filename, number) from None

        except ValidationError as base:
            raise DocumentSyntaxError.at(
                f'Invalid detail {token!r}',
                filename,
                number,
                text,
            ) from base

    @staticmethod
    def _detail(token: str, pattern: 'Pattern[str]', kind: str) -> Detail:
        """Parse a `key<sep>value` token with the given pattern."""
        match = pattern.match(token)
        if not match:
            raise DocumentSyntaxError(f'Invalid {kind} {token!r}')

        key, raw = match['key'].strip(), match['value']
        if not raw.strip():
            raise ValueSyntaxError(f'Missing value for {key!r}')

        value = parse_value(raw)
        if value.is_regex:
            _ = value.pattern

        return Detail(key=key, value=value)

    def _expectation(self, token: str) -> Detail:
        """Parse an expected response detail."""
        detail = self._detail(token, DETAIL_PATTERN, 'expectation')

        if detail.is_data:
            DataLookup(detail.key)

        if self.strict_values:
            detail.value.check()

        return detail

    @staticmethod
    def _build(draft: RequestDraft, filename: str) -> Request:
        """Freeze a draft, reporting model violations as syntax errors."""
        try:
            return draft.build()
        except ValidationError as base:
            raise DocumentSyntaxError.at(
                f'Invalid request {draft.method} {draft.path}',
                filename,
                draft.line,
            ) from base

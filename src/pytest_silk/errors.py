"""Core exception hierarchy.

This module defines the error types used across the library to report
malformed documents, malformed literal values, transport failures and
internal invariant violations in a structured way.
"""

from os import linesep
from typing import TYPE_CHECKING, Any, TypedDict

from yaml import dump

if TYPE_CHECKING:
    from typing import Self

SNIPPET_ELLIPSIS = f' ...{linesep}'
SNIPPET_INDENT = 2

FORMAT_REPLACER = '<runtime object>'
FORMAT_FILENAME = '<unicode string>'
FORMAT_INDENT = 4

SCALARS = (str, bytes, int, float, bool)


class ErrorContext(TypedDict, total=False):
    """Container describing contextual information for error formatting.

    All fields are optional; the formatter adapts output based on
    provided values.
    """

    #: Name of the source file where the error occurred.
    filename: str | None

    #: 1-based line number in the source file.
    line_num: int | None

    #: Request line (`METHOD /path`) the error belongs to.
    request: str | None

    #: Document element associated with the error.
    element: Any


class ErrorFormatter:
    """Utility class for formatting document-related errors.

    This formatter is responsible for producing human-readable
    error messages with optional source location and YAML-based
    contextual snippets.
    """

    @classmethod
    def format(cls, message: str, context: ErrorContext | None = None) -> str:
        """Format an error message using contextual information.

        Args:
            message: Base human-readable error message.
            context: Optional error context with location and data.

        Returns:
            A fully formatted error message suitable for display.
        """
        if not context:
            return message

        message += linesep
        message += cls.get_location_string(context, indent=FORMAT_INDENT)
        message += cls.get_snippet_string(context, indent=FORMAT_INDENT * 2)

        return message.rstrip()

    @classmethod
    def get_location_string(cls, context: ErrorContext, *,
                            indent: str | int | None = None) -> str:
        """Format source location information.

        Args:
            context: Error context containing location metadata.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted location string including filename, line and
            request when available.
        """
        indent = cls._ensure_indent(indent)

        filename = context.get('filename')
        if not filename:
            filename = FORMAT_FILENAME

        message = f'{indent}in "{filename}"'
        if (line_num := context.get('line_num')) is not None:
            message += f', line {line_num}'
        message += linesep

        if request := context.get('request'):
            message += f'{indent}on request {request}{linesep}'

        return message

    @classmethod
    def get_snippet_string(cls, context: ErrorContext, *,
                           indent: str | int | None = None) -> str:
        """Generate a YAML snippet of the element that failed.

        Args:
            context: Error context containing the element.
            indent: Optional indentation (string or number of spaces).

        Returns:
            A formatted multi-line snippet string, or an empty string
            if no element is available.
        """
        indent = cls._ensure_indent(indent)

        if (element := context.get('element')) is None:
            return ''

        snippet = f'{indent}{SNIPPET_ELLIPSIS}'
        snippet += cls._make_yaml(element, indent)
        snippet += linesep

        return snippet

    @classmethod
    def _filter_unsafe(cls, value: Any) -> Any:  # noqa: ANN401
        """Sanitize a value for safe YAML serialization.

        Args:
            value: Arbitrary value to sanitize.

        Returns:
            A YAML-safe representation of the value.
        """
        if value is None or isinstance(value, SCALARS):
            return value

        return FORMAT_REPLACER

    @classmethod
    def _make_yaml(cls, value: Any, indent: str = '') -> str:  # noqa: ANN401
        """Serialize a value to an indented YAML string."""
        data = dump(
            cls._filter_unsafe(value),
            indent=SNIPPET_INDENT,
            sort_keys=False,
            allow_unicode=True,
        )

        return cls._make_indent(data, indent)

    @staticmethod
    def _make_indent(value: str, indent: str) -> str:
        """Apply indentation to a multi-line string.

        Empty or whitespace-only lines are omitted.
        """
        if not indent:
            return value

        return linesep.join(
            f'{indent}{line}'
            for line in value.splitlines()
            if line.strip()
        )

    @staticmethod
    def _ensure_indent(indent: str | int | None = None) -> str:
        """Normalize indentation input."""
        if isinstance(indent, int) and indent > 0:
            return ' ' * indent

        if isinstance(indent, str):
            return indent

        return ''


class SilkError(Exception, ErrorFormatter):
    """Base exception for all pytest-silk errors.

    All custom exceptions raised by the library inherit from this
    class to allow unified error handling by callers.
    """

    def __init__(self, message: str, *,
                 context: ErrorContext | None = None) -> None:
        """Initialize an error.

        Args:
            message: Human-readable error description.
            context: Error context containing optional location values.
        """
        self.message = message
        self.context = context

        super().__init__(message)

    def __str__(self) -> str:
        """String represenatation."""
        return self.format(self.message, self.context)

    def locate(self, filename: str | None = None,
               line_num: int | None = None) -> 'Self':
        """Attach a source location unless one is already known.

        Args:
            filename: Name of the source file.
            line_num: 1-based line number.

        Returns:
            The error itself.
        """
        context = ErrorContext(**(self.context or {}))
        context.setdefault('filename', filename)
        context.setdefault('line_num', line_num)

        self.context = context

        return self


class SilkSchemaError(SilkError):
    """Error raised when a document can not be parsed.

    Any schema error aborts parsing of the document; a partially
    parsed group is never returned.
    """


class DocumentSyntaxError(SilkSchemaError):
    """Error raised for a malformed document structure.

    Examples are a malformed request heading, an unterminated fenced
    block or a separator outside of a request.
    """

    @classmethod
    def at(cls, message: str, filename: str, line_num: int,
           text: str | None = None) -> 'Self':
        """Create an error pointing at a document line.

        Args:
            message: Human-readable error message.
            filename: Name of the document.
            line_num: 1-based line number.
            text: Offending source line, if any.

        Returns:
            An initialized error with location context.
        """
        context = ErrorContext(filename=filename, line_num=line_num)
        if text is not None:
            context['element'] = text

        return cls(message, context=context)


class ValueSyntaxError(SilkSchemaError):
    """Error raised for a literal token that is not a well-formed value."""


class SilkRuntimeError(SilkError):
    """Error raised while running requests."""


class SilkTransportError(SilkRuntimeError):
    """Error raised when a request can not be built or sent.

    A transport failure aborts the whole run regardless of the
    configured failure policy.
    """


class ValueEncodingError(SilkRuntimeError):
    """Error raised when a value has no canonical JSON form.

    This is an internal invariant violation rather than a test failure
    and must never be swallowed.
    """

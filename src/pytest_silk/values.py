"""Dynamic literal values used by documents.

Every literal written in a document (header values, query parameters,
expected fields) is parsed into a `Value`. A value wraps one decoded
JSON datum and knows how to render itself and how to compare itself
with data received from a server.

Two comparison modes exist:

- `Value.equal` is regex-aware: a string written as `/pattern/` is
  searched in the textual rendering of the other side;
- `Value.strict_equal` is typed structural equality only.
"""

from functools import cached_property
from json import dumps, loads
from math import isfinite
from re import error as RegexError  # noqa: N812
from re import compile as regexp
from typing import TYPE_CHECKING, Any

from pydantic import Field

from pytest_silk.errors import ValueEncodingError, ValueSyntaxError
from pytest_silk.models import SchemaModel

if TYPE_CHECKING:
    from re import Pattern

#: Decoded literal data. Numbers are always floats after parsing.
type Data = bool | float | str | list[Data] | dict[str, Data] | None

#: Characters wrapping a literal token in a document.
TOKEN_WRAPPERS = '` \t'

REGEX_DELIMITER = '/'


def _is_regex(data: Any) -> bool:  # noqa: ANN401
    """Check whether a datum is a `/…/` delimited pattern."""
    return (
        isinstance(data, str)
        and len(data) >= 2  # noqa: PLR2004
        and data.startswith(REGEX_DELIMITER)
        and data.endswith(REGEX_DELIMITER)
    )


def _canonical(data: Any) -> Any:  # noqa: ANN401
    """Prepare a datum for JSON encoding.

    Integral floats are encoded as integers so that `200.0` renders as
    `200`, exactly as it was written.
    """
    match data:
        case bool() | str() | None:
            return data
        case float() if data.is_integer():
            return int(data)
        case int() | float():
            return data
        case list() | tuple():
            return [_canonical(item) for item in data]
        case dict():
            return {key: _canonical(item) for key, item in data.items()}
        case _:
            raise ValueEncodingError(f'cannot encode value {data!r}')


def encode(data: Any) -> str:  # noqa: ANN401
    """Encode a datum into its canonical JSON form.

    Args:
        data: Decoded datum.

    Returns:
        Compact JSON text.

    Raises:
        ValueEncodingError: If the datum can not be represented as JSON.
    """
    try:
        return dumps(_canonical(data), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as base:
        raise ValueEncodingError(f'cannot encode value {data!r}: {base}') from base


def render(data: Any) -> str:  # noqa: ANN401
    """Render a datum as text.

    Strings are rendered verbatim, everything else as canonical JSON.
    """
    if isinstance(data, str):
        return data

    return encode(data)


def kind(data: Any) -> str:  # noqa: ANN401
    """Name the dynamic type of a datum for diagnostics."""
    match data:
        case None:
            return 'null'
        case bool():
            return 'bool'
        case int() | float():
            return 'number'
        case str() if _is_regex(data):
            return 'regex'
        case str():
            return 'string'
        case list() | tuple():
            return 'list'
        case dict():
            return 'map'
        case _:
            return type(data).__name__


def same(left: Any, right: Any) -> bool:  # noqa: ANN401, PLR0911
    """Typed structural equality.

    Integers and floats are reconciled by comparing both as floats,
    booleans never equal numbers and containers compare recursively.
    """
    match left, right:
        case None, None:
            return True
        case bool(), bool():
            return left is right
        case (bool(), _) | (_, bool()):
            return False
        case int() | float(), int() | float():
            return float(left) == float(right)
        case str(), str():
            return left == right
        case list() | tuple(), list() | tuple():
            return len(left) == len(right) and all(
                same(left_item, right_item)
                for left_item, right_item in zip(left, right, strict=True)
            )
        case dict(), dict():
            return left.keys() == right.keys() and all(
                same(item, right[key])
                for key, item in left.items()
            )
        case _:
            return False


class Value(SchemaModel):
    """A literal datum parsed from a document.

    A string bounded by slashes is a regular expression pattern; it is
    never compared as a literal string by `equal`.
    """

    data: Data = Field(
        default=None,
        title='Decoded datum',
    )

    bare: bool = Field(
        default=False,
        title='Bare token',
        description='The token was not valid JSON and was kept as text.',
    )

    def __str__(self) -> str:
        """Canonical JSON rendering."""
        return self.canonical()

    def canonical(self) -> str:
        """Render the datum as canonical JSON."""
        return encode(self.data)

    def text(self) -> str:
        """Render the datum as wire text.

        Strings are sent verbatim, all other data as canonical JSON.
        """
        return render(self.data)

    def type(self) -> str:
        """Name the type of the value for diagnostics."""
        return kind(self.data)

    @property
    def is_regex(self) -> bool:
        """Whether the value is a `/…/` pattern."""
        return _is_regex(self.data)

    @cached_property
    def pattern(self) -> 'Pattern[str]':
        """Compiled regular expression of a regex value.

        Raises:
            ValueSyntaxError: If the value is not a regex or does not compile.
        """
        if not self.is_regex:
            raise ValueSyntaxError(f'not a regular expression: {self}')

        try:
            return regexp(self.data[1:-1])  # type: ignore[index]
        except RegexError as base:
            raise ValueSyntaxError(f'invalid regular expression {self.data}: {base}') from base

    def check(self) -> 'Value':
        """Validate the value as a well-formed literal.

        Returns:
            The value itself.

        Raises:
            ValueSyntaxError: If the token was not valid JSON or is
                a pattern that does not compile. Patterns may be bare.
        """
        if self.bare and not self.is_regex:
            raise ValueSyntaxError(f'invalid value: {self.data} (did you forget quotes?)')

        if self.is_regex:
            _ = self.pattern

        return self

    def equal(self, other: Any) -> bool:  # noqa: ANN401
        """Compare with actual data, regex-aware.

        A regex value is searched in the text of `other`, which is always
        rendered first regardless of its type. Values that do not match
        as patterns still get a plain comparison.
        """
        if self.is_regex and self.pattern.search(render(other)):
            return True

        return same(self.data, other)

    def strict_equal(self, other: Any) -> bool:  # noqa: ANN401
        """Compare with actual data, without regex support."""
        return same(self.data, other)


def reject_constant(name: str) -> float:
    """Refuse `NaN` and `Infinity`, they have no canonical JSON form."""
    raise ValueError(f'unsupported constant {name}')


def finite_float(text: str) -> float:
    """Decode a JSON number, refusing literals that overflow a float."""
    number = float(text)
    if not isfinite(number):
        raise ValueError(f'number out of range {text}')

    return number


def clean(raw: str | bytes) -> str:
    """Strip whitespace and backticks wrapping a literal token."""
    if isinstance(raw, bytes):
        raw = raw.decode('utf-8')

    return raw.strip(TOKEN_WRAPPERS)


def parse_value(raw: str | bytes) -> Value:
    """Parse a literal token.

    The cleaned token is decoded as JSON with every number as a float.
    Tokens that are not valid JSON, including numbers too large for a
    float, are kept verbatim as bare strings.

    Args:
        raw: Token text from the document.

    Returns:
        Parsed value.
    """
    token = clean(raw)

    try:
        data = loads(
            token,
            parse_int=finite_float,
            parse_float=finite_float,
            parse_constant=reject_constant,
        )
    except ValueError:
        return Value(data=token, bare=True)

    return Value(data=data)

"""Response body parsers.

A body parser takes the buffered response bytes and returns a generic
decoded structure, raising on malformed input. Numbers are decoded as
floats, and numbers without a finite float value are malformed input.
"""

from collections.abc import Callable
from json import loads
from math import isfinite
from typing import Any

from yaml import safe_load

from pytest_silk.values import finite_float, reject_constant

#: Body parser contract.
type BodyParser = Callable[[bytes], Any]


def _normalize(data: Any) -> Any:  # noqa: ANN401
    """Convert decoded YAML into JSON-like data, recursively.

    Numbers become finite floats, mapping keys and other scalars such
    as dates become strings.

    Raises:
        ValueError: On `NaN`, infinities and numbers overflowing a float.
    """
    match data:
        case bool():
            return data
        case int() | float():
            try:
                number = float(data)
            except OverflowError as base:
                raise ValueError(f'number out of range {data!r}') from base
            if not isfinite(number):
                raise ValueError(f'number out of range {data!r}')
            return number
        case str() | None:
            return data
        case list():
            return [_normalize(item) for item in data]
        case dict():
            return {str(key): _normalize(item) for key, item in data.items()}
        case _:
            return str(data)


def parse_json_body(content: bytes) -> Any:  # noqa: ANN401
    """Decode a JSON response body."""
    return loads(
        content,
        parse_int=finite_float,
        parse_float=finite_float,
        parse_constant=reject_constant,
    )


def parse_yaml_body(content: bytes) -> Any:  # noqa: ANN401
    """Decode a YAML (or JSON) response body."""
    return _normalize(safe_load(content))

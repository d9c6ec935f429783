"""Document grammar patterns and name types.

This module defines the line patterns recognized by the document parser
and strongly-typed aliases used by the document models.

The rules defined here form part of the public document format and are
relied upon by the parser, the runner and tooling.
"""

from re import ASCII
from re import compile as regexp
from typing import Annotated

from pydantic import Field

#: HTTP method token, upper-case letters only.
_METHOD_PATTERN = r'[A-Z]+'

#: Header field name token (RFC 9110 `token`).
_HEADER_PATTERN = r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+"

#: Markdown heading: the number of hashes is the heading level.
HEADING_PATTERN = regexp(r'^(?P<level>#{1,6})\s+(?P<text>.*?)\s*#*\s*$')

#: Request line inside a level-2 heading, optionally wrapped in backticks.
REQUEST_PATTERN = regexp(
    rf'^`?(?P<method>{_METHOD_PATTERN})\s+(?P<path>\S+?)`?$',
    flags=ASCII,
)

#: Bullet list item.
BULLET_PATTERN = regexp(r'^\s*[*+-]\s+(?P<text>.*)$')

#: Opening or closing fence of a literal block.
FENCE_PATTERN = regexp(r'^\s*```(?P<info>[^`]*)$')

#: Separator between request declaration and expected response.
SEPARATOR_PATTERN = regexp(r'^\s*===\s*$')

#: Query parameter detail: `?key=value`.
PARAM_PATTERN = regexp(r'^\?(?P<key>[^=]+)=(?P<value>.*)$', flags=ASCII)

#: Header or expectation detail: `Key: value`.
DETAIL_PATTERN = regexp(r'^(?P<key>[^\s:]+)\s*:(?P<value>.*)$')

#: Header field name, as sent on the wire.
HEADER_NAME_PATTERN = regexp(rf'^{_HEADER_PATTERN}$')

#: Key prefix of expectations addressing the decoded response body.
DATA_KEY = 'Data'

#: Synthetic detail holding the response status code.
STATUS_KEY = 'Status'


Method = Annotated[
    str, Field(
        pattern=rf'^{_METHOD_PATTERN}$',
        title='HTTP method',
        examples=[
            'GET',
            'POST',
        ],
    ),
]

HeaderName = Annotated[
    str, Field(
        pattern=r'^[^\s:]+$',
        title='Detail key',
        description=(
            'Name of a request header, a query parameter or an expected '
            'response detail such as `Status` or `Data.user.name`.'
        ),
    ),
]


def canonical_header(name: str) -> str:
    """Canonicalize a header name.

    The first letter and any letter following a hyphen are upper-cased,
    the rest lower-cased, so `content-type` becomes `Content-Type`.
    Names containing spaces or other invalid characters are returned as is.

    Args:
        name: Header name as written or received.

    Returns:
        Canonical header name.
    """
    if not HEADER_NAME_PATTERN.match(name):
        return name

    return '-'.join(part[:1].upper() + part[1:].lower() for part in name.split('-'))

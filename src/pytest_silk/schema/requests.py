"""Request and group models.

A group is one parsed document: an ordered sequence of documented HTTP
interactions. Groups are created once by the parser, read by the runner
and hold no network or file resources.
"""

from pydantic import Field

from pytest_silk.models import SchemaModel
from pytest_silk.names import Method

from .details import Block, Detail, Line


class Request(SchemaModel):
    """One documented HTTP interaction with its inputs and expectations."""

    method: Method = Field(
        title='HTTP method',
    )

    path: str = Field(
        min_length=1,
        title='Request path',
        description='Path appended to the root URL, may carry a query string.',
    )

    line: int = Field(
        default=1,
        ge=1,
        title='Source line',
        description='1-based line number of the request heading.',
    )

    details: tuple[Detail, ...] = Field(
        default=(),
        title='Request headers',
    )

    params: tuple[Detail, ...] = Field(
        default=(),
        title='Query parameters',
    )

    body: Block | None = Field(
        default=None,
        title='Request payload',
    )

    expected_body: Block | None = Field(
        default=None,
        title='Expected response payload',
        description='The response body must be byte-exact equal to it.',
    )

    expected_details: tuple[Line, ...] = Field(
        default=(),
        title='Expected response details',
        description='Expected headers, `Status` and `Data[.path]` fields.',
    )

    def __str__(self) -> str:
        """Render the request line."""
        return f'{self.method} {self.path}'

    @property
    def payload(self) -> bytes:
        """Bytes to send as request body."""
        if self.body is None:
            return b''

        return self.body.join()


class Group(SchemaModel):
    """One parsed document."""

    filename: str = Field(
        default='<unicode string>',
        title='Source filename',
    )

    title: str | None = Field(
        default=None,
        title='Document title',
        description='Text of the first level-1 heading.',
    )

    requests: tuple[Request, ...] = Field(
        default=(),
        title='Documented requests',
    )

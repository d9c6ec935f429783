"""Detail and literal block models.

A detail is a single declared `key: value` pair of a request: a header
to send, a query parameter or an expectation about the response.
"""

from pydantic import Field

from pytest_silk.models import SchemaModel
from pytest_silk.names import DATA_KEY, HeaderName
from pytest_silk.values import Value


class Detail(SchemaModel):
    """A declared key and its literal value."""

    key: HeaderName = Field(
        title='Detail key',
    )

    value: Value = Field(
        default_factory=Value,
        title='Detail value',
    )

    def __str__(self) -> str:
        """Render as written in a document."""
        return f'{self.key}: {self.value}'

    @property
    def is_data(self) -> bool:
        """Whether the detail addresses the decoded response body."""
        return self.key == DATA_KEY or self.key.startswith((f'{DATA_KEY}.', f'{DATA_KEY}['))


class Line(SchemaModel):
    """A detail together with the source line it was declared on."""

    number: int = Field(
        ge=1,
        title='Source line',
        description='1-based line number in the document.',
    )

    detail: Detail = Field(
        title='Declared detail',
    )

    @property
    def key(self) -> str:
        """Key of the declared detail."""
        return self.detail.key

    @property
    def value(self) -> Value:
        """Value of the declared detail."""
        return self.detail.value


class Block(SchemaModel):
    """A fenced literal block."""

    number: int = Field(
        ge=1,
        title='Source line',
        description='1-based line number of the opening fence.',
    )

    lines: tuple[str, ...] = Field(
        default=(),
        title='Content lines',
    )

    def __str__(self) -> str:
        """Block content as text."""
        return ''.join(f'{line}\n' for line in self.lines)

    def join(self) -> bytes:
        """Block content as bytes, every line terminated by a newline."""
        return str(self).encode('utf-8')

"""Data-path resolution into decoded response bodies.

A data path is a dotted key path such as `Data.user.name` addressing a
field of the decoded response body. List items are addressed either by
a numeric segment (`Data.items.0`) or by an index suffix
(`Data.items[0]`).
"""

from re import compile as regexp
from typing import TYPE_CHECKING, Final

from pytest_silk.errors import SilkSchemaError
from pytest_silk.names import DATA_KEY

if TYPE_CHECKING:
    from typing import Any

#: Single path segment with optional index suffixes.
_SEGMENT_PATTERN = regexp(r'^(?P<key>[^\[\]]+)(?P<indices>(\[\d+\])*)$')
_INDEX_PATTERN = regexp(r'\[(\d+)\]')


class _Missing:
    """Marker for a path that resolves to nothing."""

    def __repr__(self) -> str:
        return '(missing)'

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


class DataLookup:
    """Resolver for dotted data paths.

    Unlike a plain lookup that returns `None` on failure, the resolver
    keeps a present `null` apart from a missing field by returning the
    `MISSING` marker for the latter.
    """

    def __init__(self, path: str) -> None:
        """Initialize the resolver with a dotted path.

        Args:
            path: Dot-separated path starting with `Data`.

        Raises:
            SilkSchemaError: If the path is not a valid data path.
        """
        self.path = path.strip()
        self.keys: tuple[str | int, ...] = tuple(self._split(self.path))

        if not self.keys or self.keys[0] != DATA_KEY:
            raise SilkSchemaError(f'Invalid data path {path!r}: must start with {DATA_KEY!r}')

    @staticmethod
    def _split(path: str) -> 'list[str | int]':
        """Split a path into mapping keys and list indices."""
        keys: list[str | int] = []
        for segment in path.split('.'):
            match = _SEGMENT_PATTERN.match(segment)
            if not match:
                raise SilkSchemaError(f'Invalid data path {path!r}: bad segment {segment!r}')

            key = match['key']
            keys.append(int(key) if key.isdecimal() else key)
            keys.extend(int(index) for index in _INDEX_PATTERN.findall(match['indices']))

        return keys

    def __call__(self, data: 'Any') -> 'Any':  # noqa: ANN401
        """Resolve the path against a decoded body."""
        return self.resolve({DATA_KEY: data})

    def resolve(self, root: 'Any') -> 'Any':  # noqa: ANN401
        """Resolve the path against a root mapping.

        Args:
            root: Mapping holding the decoded body under `Data`.

        Returns:
            The addressed value (possibly `None`), or `MISSING` if any
            segment can not be applied.
        """
        value = root
        for key in self.keys:
            if isinstance(value, dict):
                if str(key) not in value:
                    return MISSING
                value = value[str(key)]
            elif isinstance(value, list) and isinstance(key, int):
                if not 0 <= key < len(value):
                    return MISSING
                value = value[key]
            else:
                return MISSING

        return value

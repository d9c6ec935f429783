"""Document schema for executable HTTP API contracts.

Defines immutable Pydantic models describing parsed documents: groups,
requests, declared details and literal blocks. The models specify the
structural contract between the document parser and the runner.
"""

from .details import Block, Detail, Line
from .requests import Group, Request

__all__ = (
    'Block',
    'Detail',
    'Group',
    'Line',
    'Request',
)

"""Document parsing and request running.

This package provides the two engines of the library:

- `DocumentParser` reads Markdown documents into groups of requests;
- `Runner` sends those requests and checks the responses.
"""

from .bodies import BodyParser, parse_json_body, parse_yaml_body
from .lookups import MISSING, DataLookup
from .parser import DocumentParser
from .runner import Outcome, Report, Runner

__all__ = (
    'MISSING',
    'BodyParser',
    'DataLookup',
    'DocumentParser',
    'Outcome',
    'Report',
    'Runner',
    'parse_json_body',
    'parse_yaml_body',
)

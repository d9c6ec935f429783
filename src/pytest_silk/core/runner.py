"""Assertion engine.

The runner executes parsed requests over an HTTP transport and checks
the responses against the declared expectations:

- the exact response body;
- response headers and the `Status` code, compared strictly;
- fields of the decoded response body (`Data[.path]`), compared with
  regex support.

Every request produces an `Outcome`. Within one request the first
failing expectation stops evaluation. Whether a failed request stops the
whole run is decided by the configured `FailurePolicy`.
"""

from functools import cache
from logging import getLogger
from os import linesep
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import Field

from pytest_silk.config import FailurePolicy, RunnerSettings
from pytest_silk.errors import ErrorContext, ErrorFormatter, SilkTransportError
from pytest_silk.models import SchemaModel
from pytest_silk.names import STATUS_KEY, canonical_header
from pytest_silk.values import encode, kind

from .bodies import parse_json_body
from .lookups import MISSING, DataLookup
from .parser import DocumentParser

if TYPE_CHECKING:
    from collections.abc import Callable
    from os import PathLike
    from typing import Self

if TYPE_CHECKING:
    from pytest_silk.schema import Group, Request
    from pytest_silk.values import Value

    from .bodies import BodyParser

logger = getLogger(__name__)

INDENT = ' '
FENCE = '```'


class Outcome(SchemaModel):
    """Result of running one request."""

    filename: str = Field(
        title='Source filename',
    )

    request: str = Field(
        title='Request line',
    )

    line: int | None = Field(
        default=None,
        title='Source line of the failure',
    )

    passed: bool = Field(
        default=True,
        title='Whether every expectation held',
    )

    messages: tuple[str, ...] = Field(
        default=(),
        title='Diagnostic lines',
    )

    def describe(self) -> str:
        """Format the outcome for humans."""
        context = ErrorContext(
            filename=self.filename,
            line_num=self.line,
            request=self.request,
        )

        status = 'passed' if self.passed else 'failed'

        return linesep.join((
            ErrorFormatter.format(f'Request {status}', context),
            *self.messages,
        ))


class Report(SchemaModel):
    """Outcomes of a run, in execution order."""

    outcomes: tuple[Outcome, ...] = Field(
        default=(),
        title='Request outcomes',
    )

    aborted: bool = Field(
        default=False,
        title='Whether the run stopped at a failure',
    )

    @property
    def passed(self) -> bool:
        """Whether every executed request passed."""
        return all(outcome.passed for outcome in self.outcomes)

    @property
    def failures(self) -> tuple[Outcome, ...]:
        """Failed outcomes."""
        return tuple(outcome for outcome in self.outcomes if not outcome.passed)

    def raise_for_failures(self) -> None:
        """Fail the calling test unit if any request failed.

        Raises:
            AssertionError: With the diagnostics of every failure.
        """
        if self.passed:
            return

        raise AssertionError(
            (linesep * 2).join(outcome.describe() for outcome in self.failures),
        )


class RequestFailure(Exception):  # noqa: N818
    """Internal signal: an expectation of the current request failed."""

    def __init__(self, line: int | None, message: str) -> None:
        self.line = line
        self.message = message

        super().__init__(message)


class Evaluation:
    """Expectation checks of one request against its response.

    The decoded body is computed lazily and at most once, and lives only
    as long as this evaluation.
    """

    def __init__(self, request: 'Request', response: httpx.Response, *,
                 parse_body: 'BodyParser',
                 log: 'Callable[[str], None]') -> None:
        self.request = request
        self.parse_body = parse_body
        self.sink = log

        self.details = self.flatten(response)
        self.body = response.content

        self.data = cache(self._parse_body)

    @staticmethod
    def flatten(response: httpx.Response) -> dict[str, Any]:
        """Collect response details.

        Repeated headers keep their last value only. The status code is
        injected as the `Status` detail.
        """
        details: dict[str, Any] = {}
        for name, value in response.headers.multi_items():
            details[canonical_header(name)] = value

        details[STATUS_KEY] = float(response.status_code)

        return details

    def _parse_body(self) -> tuple[Any, Exception | None]:
        """Decode the response body once."""
        try:
            return self.parse_body(self.body), None
        except Exception as error:  # noqa: BLE001
            return None, error

    def log(self, *args: object) -> None:
        """Report a diagnostic line."""
        self.sink(' '.join(str(arg) for arg in args))

    def run(self) -> None:
        """Check all expectations in document order.

        Raises:
            RequestFailure: On the first failing expectation.
        """
        expected_body = self.request.expected_body
        if expected_body is not None and expected_body.lines:
            if not self.assert_body(expected_body.join()):
                raise RequestFailure(expected_body.number, '- body doesn\'t match')

        for line in self.request.expected_details:
            if line.detail.is_data:
                matched = self.assert_data(line.key, line.value)
            else:
                matched = self.assert_detail(line.key, line.value)

            if not matched:
                raise RequestFailure(line.number, f'- {line.key} doesn\'t match')

    def assert_body(self, expected: bytes) -> bool:
        """Compare the response body byte by byte."""
        if self.body == expected:
            return True

        self.log('body expected:')
        self.log(FENCE)
        self.log(expected.decode('utf-8', errors='replace'))
        self.log(FENCE)
        self.log('actual:')
        self.log(FENCE)
        self.log(self.body.decode('utf-8', errors='replace'))
        self.log(FENCE)

        return False

    def assert_detail(self, key: str, expected: 'Value') -> bool:
        """Compare a header or the status code, strictly."""
        name = canonical_header(key)
        if name not in self.details:
            self.log(key, f'expected {expected.type()}: {expected}  actual: (missing)')
            return False

        actual = self.details[name]
        if not expected.strict_equal(actual):
            self.log(key, f'expected {expected.type()}: {expected}  actual {kind(actual)}: {encode(actual)}')
            return False

        return True

    def assert_data(self, key: str, expected: 'Value') -> bool:
        """Compare a field of the decoded body, regex-aware."""
        data, error = self.data()
        if error is not None:
            self.log(key, f'expected {expected.type()}: {expected}  actual: failed to parse body: {error}')
            return False

        if data is None:
            self.log(key, f'expected {expected.type()}: {expected}  actual: no data')
            return False

        actual = DataLookup(key)(data)
        if actual is MISSING:
            if expected.data is None:
                return True
            self.log(key, f'expected {expected.type()}: {expected}  actual: (missing)')
            return False

        if not expected.equal(actual):
            self.log(key, f'expected {expected.type()}: {expected}  actual {kind(actual)}: {encode(actual)}')
            return False

        return True


class Runner:
    """Runs parsed requests against a live server.

    Collaborators are injected at construction:

    - `transport` sends a built `httpx.Request` and returns the response;
    - `parse_body` decodes buffered response bodies for `Data` checks;
    - `log` receives diagnostic lines, `verbose` request traces.
    """

    def __init__(self, root_url: str, *,  # noqa: PLR0913
                 transport: httpx.BaseTransport | None = None,
                 parse_body: 'BodyParser' = parse_json_body,
                 parser: DocumentParser | None = None,
                 log: 'Callable[[str], None] | None' = None,
                 verbose: 'Callable[[str], None] | None' = None,
                 policy: FailurePolicy = FailurePolicy.ABORT) -> None:
        """Initialize a runner.

        Args:
            root_url: URL prepended to every request path.
            transport: HTTP transport; a new `httpx.HTTPTransport`
                owned by the runner by default.
            parse_body: Decoder of response bodies.
            parser: Document parser used by `run_files`.
            log: Sink for diagnostic lines.
            verbose: Sink for request traces.
            policy: Whether a failed request stops the run.
        """
        self.root_url = root_url

        self._owns_transport = transport is None
        self.transport = transport or httpx.HTTPTransport()

        self.parse_body = parse_body
        self.parser = parser or DocumentParser()

        self.log = log or logger.info
        self.verbose = verbose or logger.debug

        self.policy = policy

    @classmethod
    def from_settings(cls, settings: RunnerSettings, **kwargs: Any) -> 'Self':  # noqa: ANN401
        """Create a runner from resolved settings.

        Args:
            settings: Runtime settings; `root_url` is required.
            **kwargs: Collaborators passed to the constructor.

        Returns:
            Configured runner.

        Raises:
            ValueError: If no root URL is configured.
        """
        if not settings.root_url:
            raise ValueError('Root URL is not configured')

        kwargs.setdefault('parser', DocumentParser(strict_values=settings.strict_values))

        return cls(settings.root_url, policy=settings.policy, **kwargs)

    def __enter__(self) -> 'Self':
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the transport if the runner created it."""
        if self._owns_transport:
            self.transport.close()

    def run_glob(self, pattern: str) -> Report:
        """Parse and run all documents matching a glob pattern."""
        return self.run_group(*self.parser.parse_glob(pattern))

    def run_files(self, *paths: 'str | PathLike[str]') -> Report:
        """Parse and run documents.

        All documents are parsed before anything runs; a parse error in
        any of them aborts the run.
        """
        return self.run_group(*self.parser.parse_files(*paths))

    def run_group(self, *groups: 'Group') -> Report:
        """Run groups in order, requests in document order.

        Returns:
            Report of the executed requests.

        Raises:
            SilkTransportError: If a request can not be sent.
        """
        outcomes: list[Outcome] = []

        for group in groups:
            for request in group.requests:
                outcome = self.run_request(group, request)
                outcomes.append(outcome)

                if not outcome.passed and self.policy is FailurePolicy.ABORT:
                    return Report(outcomes=tuple(outcomes), aborted=True)

        return Report(outcomes=tuple(outcomes))

    def run_request(self, group: 'Group', request: 'Request') -> Outcome:
        """Send one request and check its expectations.

        Args:
            group: Group the request belongs to.
            request: Request to run.

        Returns:
            Outcome of the request.

        Raises:
            SilkTransportError: If the request can not be built or sent.
        """
        response = self.send(self.build(request))

        messages: list[str] = []

        def collect(message: str) -> None:
            messages.append(message)
            self.log(message)

        evaluation = Evaluation(request, response, parse_body=self.parse_body, log=collect)

        try:
            evaluation.run()

        except RequestFailure as failure:
            collect(f'--- FAIL: {request}')
            collect(f'{group.filename}:{failure.line} {failure.message}')

            return Outcome(
                filename=group.filename,
                request=str(request),
                line=failure.line,
                passed=False,
                messages=tuple(messages),
            )

        return Outcome(
            filename=group.filename,
            request=str(request),
            line=request.line,
        )

    def build(self, request: 'Request') -> httpx.Request:
        """Construct the outbound HTTP request.

        Raises:
            SilkTransportError: If the request can not be constructed.
        """
        payload = request.payload
        url = self.root_url + request.path
        self.verbose(f'{request.method} {url}')

        headers = [('Content-Length', str(len(payload)))]
        self.verbose(f'{INDENT}Content-Length: {len(payload)}')

        for detail in request.details:
            self.verbose(f'{INDENT}{detail}')
            headers.append((detail.key, detail.value.text()))

        try:
            target = httpx.URL(url)
            params = target.params
            for detail in request.params:
                self.verbose(f'{INDENT}{detail}')
                params = params.add(detail.key, detail.value.text())
            target = target.copy_with(params=params)

            return httpx.Request(
                request.method,
                target,
                headers=headers,
                content=payload or None,
            )

        except (httpx.InvalidURL, ValueError) as base:
            self.log(f'invalid request: {base}')
            raise SilkTransportError(f'invalid request {request}: {base}') from base

    def send(self, request: httpx.Request) -> httpx.Response:
        """Execute the request and buffer the response body.

        Raises:
            SilkTransportError: On transport failures.
        """
        try:
            response = self.transport.handle_request(request)
            try:
                response.read()
            finally:
                response.close()

        except httpx.HTTPError as base:
            self.log(f'{request.method} {request.url}: {base}')
            raise SilkTransportError(f'request {request.method} {request.url} failed: {base}') from base

        return response


"""Tests for the command-line utilities."""

from typing import TYPE_CHECKING

import httpx
import pytest
from click.testing import CliRunner

from pytest_silk.__main__ import cli

if TYPE_CHECKING:
    from pathlib import Path

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


DOCUMENT = '''\
# Users

## GET /users/1

===

* `Status: 200`
* `Data.name: "Mat"`

## DELETE /users/1
'''


@pytest.fixture
def document(tmp_path: 'Path') -> 'Path':
    """Write a document with two requests."""
    path = tmp_path / 'test_users.md'
    path.write_text(DOCUMENT, encoding='utf-8')

    return path


@pytest.fixture(autouse=True)
def no_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ignore settings of the surrounding environment."""
    monkeypatch.delenv('SILK_ROOT_URL', raising=False)


def test_check(document: 'Path') -> None:
    """List requests declared by documents."""
    result = CliRunner().invoke(cli, ['check', str(document)])

    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == [
        f'{document}: Users',
        '  3: GET /users/1 (2 expectations)',
        '  10: DELETE /users/1 (0 expectations)',
    ]


def test_check_malformed(tmp_path: 'Path') -> None:
    """Report parse errors and exit with an error code."""
    path = tmp_path / 'test_broken.md'
    path.write_text('## GET /\n===\n* `Data.name: Mat`\n', encoding='utf-8')

    assert CliRunner().invoke(cli, ['check', str(path)]).exit_code == 0

    result = CliRunner().invoke(cli, ['check', '--strict-values', str(path)])

    assert result.exit_code == 1
    assert 'did you forget quotes' in result.output


@pytest.mark.parametrize('name, status, exit_code, summary', (
    pytest.param('Mat', 200, 0, '2 requests, 0 failed', id='passed'),
    pytest.param('Bob', 200, 1, '1 requests, 1 failed', id='failed'),
))
def test_run(document: 'Path', mocker: 'MockerFixture', name: str,
             status: int, exit_code: int, summary: str) -> None:
    """Run documents and report a summary."""
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == 'DELETE':
            return httpx.Response(204)
        return httpx.Response(status, json={'name': name})

    mocker.patch('httpx.HTTPTransport', return_value=httpx.MockTransport(handler))

    result = CliRunner().invoke(cli, ['run', '--url', 'http://api.test', str(document)])

    assert result.exit_code == exit_code, result.output
    assert result.output.splitlines()[-1] == summary


def test_run_continue(document: 'Path', mocker: 'MockerFixture') -> None:
    """Keep running after a failed request."""
    mocker.patch('httpx.HTTPTransport', return_value=httpx.MockTransport(
        lambda _: httpx.Response(500),
    ))

    result = CliRunner().invoke(
        cli,
        ['run', '--continue', str(document)],
        env={'SILK_ROOT_URL': 'http://api.test'},
    )

    assert result.exit_code == 1
    assert result.output.splitlines()[-1] == '2 requests, 1 failed'


def test_run_transport_error(document: 'Path', mocker: 'MockerFixture') -> None:
    """Report transport failures as errors."""
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError('connection refused', request=request)

    mocker.patch('httpx.HTTPTransport', return_value=httpx.MockTransport(refuse))

    result = CliRunner().invoke(cli, ['run', '-u', 'http://api.test', str(document)])

    assert result.exit_code == 1
    assert 'connection refused' in result.output


def test_run_requires_url(document: 'Path') -> None:
    """Refuse to run without a root URL."""
    result = CliRunner().invoke(cli, ['run', str(document)])

    assert result.exit_code == 2
    assert '--url' in result.output

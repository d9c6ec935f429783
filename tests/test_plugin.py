"""Integration tests for the pytest plugin."""

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from _pytest.pytester import Pytester, RunResult


HELLO_DOCUMENT = '''\
# Hello

## GET /hello

* `?name={name}`

===

* `Status: 200`
* `Content-Type: "text/html; charset=utf-8"`

```
Hello Mat.
```
'''

TWO_FAILURES_DOCUMENT = '''\
## GET /missing
===
* `Status: 200`

## GET /hello
===
* `Status: 201`
'''


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run nested sessions with the plugin only."""
    monkeypatch.setenv('PYTEST_DISABLE_PLUGIN_AUTOLOAD', '1')
    monkeypatch.delenv('SILK_ROOT_URL', raising=False)
    monkeypatch.delenv('SILK_POLICY', raising=False)
    monkeypatch.delenv('SILK_STRICT_VALUES', raising=False)


def run(pytester: 'Pytester', *args: str) -> 'RunResult':
    """Run a nested pytest session with the plugin enabled."""
    return pytester.runpytest('-p', 'pytest_silk.plugin', *args)


def test_document_passes(pytester: 'Pytester', hello_server: str) -> None:
    """Collect a document as one passing item."""
    pytester.makefile('.md', test_hello=HELLO_DOCUMENT.format(name='Mat'))

    result = run(pytester, f'--silk-url={hello_server}', '-v')

    result.assert_outcomes(passed=1)
    result.stdout.fnmatch_lines(['*test_hello.md::test_hello PASSED*'])


def test_document_fails(pytester: 'Pytester', hello_server: str) -> None:
    """Report request diagnostics instead of a traceback."""
    pytester.makefile('.md', test_hello=HELLO_DOCUMENT.format(name='World'))

    result = run(pytester, f'--silk-url={hello_server}')

    result.assert_outcomes(failed=1)
    result.stdout.fnmatch_lines([
        '*Request failed*',
        '*on request GET /hello*',
        '*--- FAIL: GET /hello*',
        "*test_hello.md:12 - body doesn't match*",
    ])


def test_url_from_environment(pytester: 'Pytester', hello_server: str,
                              monkeypatch: pytest.MonkeyPatch) -> None:
    """Read the root URL from the environment."""
    monkeypatch.setenv('SILK_ROOT_URL', hello_server)
    pytester.makefile('.md', test_hello=HELLO_DOCUMENT.format(name='Mat'))

    run(pytester).assert_outcomes(passed=1)


def test_skipped_without_url(pytester: 'Pytester') -> None:
    """Skip documents when no server is configured."""
    pytester.makefile('.md', test_hello=HELLO_DOCUMENT.format(name='Mat'))

    result = run(pytester, '-rs')

    result.assert_outcomes(skipped=1)
    result.stdout.fnmatch_lines(['*root URL is not configured*'])


def test_stop_at_first_failure(pytester: 'Pytester', hello_server: str) -> None:
    """Stop a document at its first failed request by default."""
    pytester.makefile('.md', test_two=TWO_FAILURES_DOCUMENT)

    result = run(pytester, f'--silk-url={hello_server}')

    result.assert_outcomes(failed=1)
    result.stdout.fnmatch_lines(['*--- FAIL: GET /missing*'])
    result.stdout.no_fnmatch_line('*--- FAIL: GET /hello*')


def test_continue_after_failure(pytester: 'Pytester', hello_server: str) -> None:
    """Run every request of a document on demand."""
    pytester.makefile('.md', test_two=TWO_FAILURES_DOCUMENT)

    result = run(pytester, f'--silk-url={hello_server}', '--silk-continue')

    result.assert_outcomes(failed=1)
    result.stdout.fnmatch_lines([
        '*--- FAIL: GET /missing*',
        '*--- FAIL: GET /hello*',
    ])


def test_malformed_document(pytester: 'Pytester', hello_server: str) -> None:
    """Malformed documents fail collection."""
    pytester.makefile('.md', test_broken='# Broken\n\n## Hello there\n')

    result = run(pytester, f'--silk-url={hello_server}')

    result.assert_outcomes(errors=1)
    result.stdout.fnmatch_lines(['*Malformed request line*'])


def test_strict_values_option(pytester: 'Pytester', hello_server: str) -> None:
    """Reject bare expectation values in strict mode."""
    pytester.makefile('.md', test_bare='## GET /hello\n===\n* `Content-Type: text/html`\n')

    result = run(pytester, f'--silk-url={hello_server}', '--silk-strict-values')

    result.assert_outcomes(errors=1)
    result.stdout.fnmatch_lines(['*did you forget quotes*'])


def test_other_files_are_ignored(pytester: 'Pytester', hello_server: str) -> None:
    """Only `test_*.md` files are collected."""
    pytester.makefile('.md', README='## Not a request\n')
    pytester.makefile('.md', test_hello=HELLO_DOCUMENT.format(name='Mat'))

    run(pytester, f'--silk-url={hello_server}').assert_outcomes(passed=1)

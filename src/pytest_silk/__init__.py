"""Pytest plugin and runner for Markdown API documents.

The `pytest_silk` package lets HTTP API contracts be written as plain
Markdown and executed as tests against a live server.

Key features:
- Markdown documents collected as pytest test items;
- a small grammar for requests, headers, query parameters and bodies;
- expectations on status, headers, exact bodies and nested JSON fields,
  with regular expression literals written as `/pattern/`.
"""

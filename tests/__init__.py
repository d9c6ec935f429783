"""Test suite for the pytest-silk package.

This package contains unit and integration tests validating literal
values, document parsing, request running and pytest integration of
Markdown API documents.
"""

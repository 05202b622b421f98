"""Test package for schemas.

Contains unit tests for:
- Turn and Role
- Citation, LocalReference and CitationStyle
"""

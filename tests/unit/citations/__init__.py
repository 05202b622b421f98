"""Test package for citations.

Contains unit tests for:
- URL canonicalization and source labels
- CitationRegistry numbering, reset and freeze
- Citation style rendering and the citation index
"""

"""Perplexity conversation exporter.

Turns a live Perplexity thread into one Markdown document with globally
consistent citation numbering.
"""

__version__ = "2.3.2"

"""
refload – load delimited flat-text reference files into typed records.

The public API lives in ``refload.data``; see ``refload.data.loaders``.
"""

__version__ = "0.1.0"

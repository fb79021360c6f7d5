"""
Services package for the GraphQL normalization service.

Contains the text pipeline (parse, canonicalize, print, minify) used by the
HTTP API and the command-line tool.
"""

from graphql_normalize.services.normalizer import (
    NormalizedQuery,
    is_equivalent,
    minify,
    normalize,
    normalize_query,
)

__all__ = ["NormalizedQuery", "is_equivalent", "minify", "normalize", "normalize_query"]

"""
Canonical ordering for GraphQL documents.

This package rewrites a parsed GraphQL document so that all of its
order-insensitive lists are in a fixed order.

Key Components:
- canonicalizer: Depth-first walk that rebuilds the AST in canonical order
- keys: Total sort keys for definitions, selections, names and values

Design Principles:
- Determinism: Equivalent documents print to byte-identical text
- Idempotence: Canonicalizing a canonical document changes nothing
- Preservation: No node is added, removed or changed in kind
"""

from graphql_normalize.canonical.canonicalizer import (
    canonicalize_definition,
    canonicalize_directives,
    canonicalize_document,
    canonicalize_selection_set,
    canonicalize_value,
    canonicalize_variable_definitions,
)

__all__ = [
    "canonicalize_document",
    "canonicalize_definition",
    "canonicalize_selection_set",
    "canonicalize_directives",
    "canonicalize_variable_definitions",
    "canonicalize_value",
]

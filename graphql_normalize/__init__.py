"""
GraphQL query normalization.

Rewrites GraphQL executable documents into a canonical, order-independent
form so equivalent queries can be compared, cached and deduplicated by text.
"""

__version__ = "0.1.0"

"""
Query normalization service.

Composes the full text pipeline around the canonicalizer:

    source text -> graphql.parse -> canonicalize_document -> graphql.print_ast
                -> (optional) strip_ignored_characters

Canonical text is the identity of a query: its SHA-256 checksum is the key
used to deduplicate and cache queries.
"""

import hashlib
import logging
import time
from dataclasses import dataclass

from graphql import GraphQLSyntaxError, parse, print_ast
from graphql.language import DocumentNode, ExecutableDefinitionNode
from graphql.utilities import strip_ignored_characters

from graphql_normalize.canonical import canonicalize_document
from graphql_normalize.core.errors import (
    MinifyError,
    NormalizeError,
    QueryParseError,
    UnsupportedDefinitionError,
)
from graphql_normalize.core.observability import get_region, metrics
from graphql_normalize.core.telemetry import get_tracer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedQuery:
    """Canonical text of a query with its content checksum."""

    text: str
    checksum: str
    minified: bool
    definition_count: int


def compute_checksum(text: str) -> str:
    """
    Compute SHA-256 checksum of canonical text.

    Returns:
        Checksum in format: sha256:<lowercase-hex>
    """
    return f"sha256:{hashlib.sha256(text.encode('utf-8')).hexdigest()}"


def parse_query(source: str) -> DocumentNode:
    """
    Parse GraphQL source text into an executable document.

    Raises:
        QueryParseError: If the text is not valid GraphQL
        UnsupportedDefinitionError: If the text holds type-system definitions
            (schema, type or directive declarations), which have no canonical
            form here
    """
    try:
        document = parse(source, no_location=True)
    except GraphQLSyntaxError as e:
        raise QueryParseError(
            f"Invalid GraphQL: {e.message}",
            details={
                "locations": [
                    {"line": location.line, "column": location.column}
                    for location in e.locations or []
                ],
            },
        ) from e

    for definition in document.definitions:
        if not isinstance(definition, ExecutableDefinitionNode):
            raise UnsupportedDefinitionError(
                f"Cannot canonicalize definition of kind '{definition.kind}'",
                details={"kind": definition.kind},
            )
    return document


def minify(text: str) -> str:
    """
    Strip all insignificant whitespace and commas from GraphQL text.

    Raises:
        MinifyError: If the text cannot be tokenized
    """
    try:
        return strip_ignored_characters(text)
    except GraphQLSyntaxError as e:
        raise MinifyError(f"Could not minify: {e.message}") from e


def normalize(source: str) -> str:
    """
    Return the canonical text of a GraphQL document.

    Example:
        >>> print(normalize("{ b a }"))
        {
          a
          b
        }
    """
    document = canonicalize_document(parse_query(source))
    return print_ast(document)


def normalize_query(
    source: str, minify_output: bool = False, operation: str = "normalize"
) -> NormalizedQuery:
    """
    Normalize a query and compute its checksum, recording metrics.

    The checksum is always taken over the unminified canonical text so that
    minified and pretty outputs of the same query share one identity.

    Args:
        source: GraphQL source text
        minify_output: Return minified canonical text
        operation: Metric label naming the caller ("normalize" or "compare")

    Returns:
        NormalizedQuery with text, checksum and definition count

    Raises:
        QueryParseError: If the source is not valid GraphQL
        UnsupportedDefinitionError: If the source holds type-system definitions
        MinifyError: If the canonical text cannot be minified
    """
    start_time = time.perf_counter()
    status = "success"
    region = get_region() or "unknown"

    with get_tracer().start_as_current_span("graphql_normalize.normalize") as span:
        span.set_attribute("graphql.source_length", len(source))
        span.set_attribute("graphql_normalize.operation", operation)
        try:
            document = canonicalize_document(parse_query(source))
            canonical = print_ast(document)
            checksum = compute_checksum(canonical)
            text = minify(canonical) if minify_output else canonical

            span.set_attribute("graphql.definitions", len(document.definitions))
            span.set_attribute("graphql.checksum", checksum)

            metrics.normalizer_definitions_count.labels(region=region).observe(
                len(document.definitions)
            )
            metrics.normalizer_output_bytes.labels(region=region).observe(
                len(text.encode("utf-8"))
            )

            logger.info(
                "Normalized query",
                extra={
                    "checksum": checksum,
                    "definitions": len(document.definitions),
                    "minified": minify_output,
                    "operation": operation,
                },
            )
            return NormalizedQuery(
                text=text,
                checksum=checksum,
                minified=minify_output,
                definition_count=len(document.definitions),
            )

        except NormalizeError as e:
            status = "error"
            logger.warning(
                f"Normalization failed: {e.message}",
                extra={"error_type": type(e).__name__, "details": e.details},
            )
            raise

        finally:
            metrics.normalizer_documents_total.labels(
                operation=operation, status=status, region=region
            ).inc()
            metrics.normalizer_duration_seconds.labels(
                operation=operation, region=region
            ).observe(time.perf_counter() - start_time)


def is_equivalent(left: str, right: str) -> tuple[bool, NormalizedQuery, NormalizedQuery]:
    """
    Check whether two documents share one canonical form.

    Returns:
        Tuple of (equivalent, left result, right result)
    """
    left_result = normalize_query(left, operation="compare")
    right_result = normalize_query(right, operation="compare")
    return left_result.checksum == right_result.checksum, left_result, right_result

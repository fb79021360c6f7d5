"""
API routes for GraphQL query normalization.

Normalization is CPU-bound and synchronous, so these handlers are plain
functions that FastAPI runs in its worker thread pool.
"""

from __future__ import annotations

from fastapi import APIRouter

from graphql_normalize.api.schemas.normalize import (
    CompareRequest,
    CompareResponse,
    NormalizeRequest,
    NormalizeResponse,
)
from graphql_normalize.core.config import settings
from graphql_normalize.core.errors import ValidationError
from graphql_normalize.services.normalizer import is_equivalent, normalize_query

router = APIRouter(tags=["normalize"])


def _check_query_length(field: str, query: str) -> None:
    if len(query) > settings.max_query_length:
        raise ValidationError(
            f"{field} exceeds maximum length of {settings.max_query_length} characters",
            details={"field": field, "length": len(query), "limit": settings.max_query_length},
        )


@router.post("/normalize")
def normalize_endpoint(payload: NormalizeRequest) -> NormalizeResponse:
    """Return the canonical text and checksum of a GraphQL document.

    Two documents that differ only in the order of selections, arguments,
    directives, variable definitions or list elements produce the same
    response.
    """
    _check_query_length("query", payload.query)
    result = normalize_query(payload.query, minify_output=payload.minify)
    return NormalizeResponse(
        normalized=result.text,
        checksum=result.checksum,
        minified=result.minified,
        definition_count=result.definition_count,
    )


@router.post("/normalize/compare")
def compare_endpoint(payload: CompareRequest) -> CompareResponse:
    """Report whether two GraphQL documents share one canonical form."""
    _check_query_length("left", payload.left)
    _check_query_length("right", payload.right)
    equivalent, left, right = is_equivalent(payload.left, payload.right)
    return CompareResponse(
        equivalent=equivalent,
        left_checksum=left.checksum,
        right_checksum=right.checksum,
    )

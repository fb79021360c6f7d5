"""Pydantic schemas for normalization API requests/responses."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class NormalizeRequest(BaseModel):
    """Normalize a single GraphQL document."""

    query: str = Field(min_length=1, description="GraphQL executable document text")
    minify: bool = Field(False, description="Return minified canonical text")

    @field_validator("query")
    @classmethod
    def validate_query_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("query must not be blank")
        return v


class NormalizeResponse(BaseModel):
    """Canonical form of a GraphQL document."""

    normalized: str
    checksum: str = Field(description="sha256:<hex> of the unminified canonical text")
    minified: bool
    definition_count: int


class CompareRequest(BaseModel):
    """Compare two GraphQL documents by canonical form."""

    left: str = Field(min_length=1)
    right: str = Field(min_length=1)


class CompareResponse(BaseModel):
    """Result of comparing two documents."""

    equivalent: bool
    left_checksum: str
    right_checksum: str

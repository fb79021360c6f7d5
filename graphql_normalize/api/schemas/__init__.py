"""
Pydantic schemas for API request/response validation.
"""

# Re-export schemas for convenient imports.
from .normalize import CompareRequest as CompareRequest
from .normalize import CompareResponse as CompareResponse
from .normalize import NormalizeRequest as NormalizeRequest
from .normalize import NormalizeResponse as NormalizeResponse

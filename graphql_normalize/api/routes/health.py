from fastapi import APIRouter

from graphql_normalize import __version__

router = APIRouter(tags=["health"])


@router.get("/health")
def health() -> dict:
    """Basic health check endpoint."""
    return {"ok": True, "version": __version__}

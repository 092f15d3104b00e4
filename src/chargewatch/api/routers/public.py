"""Public liveness route."""

from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Liveness probe. Does not touch Shopify, Slack or the database."""
    return {"status": "ok"}

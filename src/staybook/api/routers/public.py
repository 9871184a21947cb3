"""Public routes that are not part of the booking API."""

from fastapi import APIRouter

router = APIRouter()


@router.get("/")
def health() -> dict:
    """Health check endpoint."""
    return {"message": "OK"}

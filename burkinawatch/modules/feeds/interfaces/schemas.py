"""Feed API schemas."""

from pydantic import BaseModel, Field


class RefreshResponse(BaseModel):
    """Result of a manual refresh."""

    message: str = Field(..., description="Human-readable outcome")
    count: int = Field(..., description="Number of items now cached", ge=0)


class CacheClearedResponse(BaseModel):
    """Result of a manual cache invalidation."""

    message: str
    domain: str

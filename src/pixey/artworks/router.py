"""Featured artworks endpoint."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from pixey.artworks.service import list_featured_artworks
from pixey.database import get_session
from pixey.schemas import ApiResponse, ok

router = APIRouter(prefix="/api", tags=["Artworks"])


class ArtworkResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None = None
    image_url: str
    creator_wallet: str | None = None
    is_featured: bool
    created_at: datetime | None = None


@router.get("/featured-artworks", response_model=ApiResponse[list[ArtworkResponse]])
async def featured_artworks(
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
) -> ApiResponse[list[ArtworkResponse]]:
    """Artworks picked for the gallery."""
    artworks = await list_featured_artworks(db, limit=limit)
    return ok([ArtworkResponse.model_validate(a) for a in artworks])

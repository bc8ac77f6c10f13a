"""Featured artwork queries."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pixey.db.models import FeaturedArtwork


async def list_featured_artworks(db: AsyncSession, limit: int = 50) -> list[FeaturedArtwork]:
    """Featured artworks, newest first."""
    result = await db.execute(
        select(FeaturedArtwork)
        .where(FeaturedArtwork.is_featured.is_(True))
        .order_by(FeaturedArtwork.created_at.desc(), FeaturedArtwork.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())

"""
Production endpoints.

Public listing of productions plus an admin-only delete.
"""

import logging
from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict
from sqlalchemy import select

from api.middleware.authorization import require_admin
from database.connection import get_async_session
from database.models import Production

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/productions", tags=["productions"])


class ProductionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    season: str
    playwright: str | None = None
    director: str | None = None
    venue: str | None = None
    opening_date: date | None = None
    closing_date: date | None = None
    description: str | None = None


@router.get("", response_model=list[ProductionResponse])
async def list_productions(season: str | None = None):
    """List published productions, newest first."""
    async with get_async_session() as session:
        query = select(Production).where(Production.is_published.is_(True))
        if season:
            query = query.where(Production.season == season)
        query = query.order_by(Production.opening_date.desc(), Production.title)

        result = await session.execute(query)
        return result.scalars().all()


@router.get("/{production_id}", response_model=ProductionResponse)
async def get_production(production_id: int):
    """Get a single production."""
    async with get_async_session() as session:
        production = await session.get(Production, production_id)
        if not production:
            raise HTTPException(status_code=404, detail="Production not found")
        return production


@router.delete("/{production_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_production(
    production_id: int,
    current_user: Annotated[dict[str, Any], Depends(require_admin())],
):
    """Delete a production. Admin only."""
    async with get_async_session() as session:
        production = await session.get(Production, production_id)
        if not production:
            raise HTTPException(status_code=404, detail="Production not found")

        await session.delete(production)
        await session.commit()

    logger.info(
        f"Production {production_id} deleted",
        extra={"user": current_user["sub"], "request_path": f"/api/productions/{production_id}"},
    )

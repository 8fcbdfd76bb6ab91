"""Award endpoints."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict
from sqlalchemy import select

from api.middleware.authorization import require_admin
from database.connection import get_async_session
from database.models import Award, AwardType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/awards", tags=["awards"])


class AwardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    year: int
    name: str
    award_type: AwardType
    category: str
    recipient: str | None = None


@router.get("", response_model=list[AwardResponse])
async def list_awards(year: int | None = None):
    """List awards grouped by year (newest first), winners before nominees."""
    async with get_async_session() as session:
        query = select(Award)
        if year is not None:
            query = query.where(Award.year == year)
        query = query.order_by(Award.year.desc(), Award.award_type.desc(), Award.name, Award.category)

        result = await session.execute(query)
        return result.scalars().all()


@router.delete("/{award_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_award(
    award_id: int,
    current_user: Annotated[dict[str, Any], Depends(require_admin())],
):
    """Delete an award. Admin only."""
    async with get_async_session() as session:
        award = await session.get(Award, award_id)
        if not award:
            raise HTTPException(status_code=404, detail="Award not found")

        await session.delete(award)
        await session.commit()

    logger.info(
        f"Award {award_id} deleted",
        extra={"user": current_user["sub"], "request_path": f"/api/awards/{award_id}"},
    )

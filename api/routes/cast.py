"""Cast page endpoint."""

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict
from sqlalchemy import select

from database.connection import get_async_session
from database.models import CastMember

router = APIRouter(prefix="/api/cast", tags=["cast"])


class CastMemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    bio: str | None = None
    headshot_path: str | None = None
    year_joined: int | None = None
    is_active: bool


@router.get("", response_model=list[CastMemberResponse])
async def list_cast(include_alumni: bool = False):
    """List cast members; alumni only on request."""
    async with get_async_session() as session:
        query = select(CastMember)
        if not include_alumni:
            query = query.where(CastMember.is_active.is_(True))
        result = await session.execute(query.order_by(CastMember.name))
        return result.scalars().all()

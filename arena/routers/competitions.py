"""
Competitions router: the minimal parent records teams register against.

Endpoints:
    POST /competitions       → create a competition (organizer = current user)
    GET  /competitions/{id}  → competition detail
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from arena.database import get_db
from arena.models.competition import Competition, CompetitionStatus
from arena.models.user import User
from arena.routers.auth import require_user
from arena.schemas.competition import CompetitionCreate, CompetitionOut
from arena.services.teams import get_competition

router = APIRouter(prefix="/competitions", tags=["competitions"])


@router.post("", response_model=CompetitionOut, status_code=status.HTTP_201_CREATED)
async def create_competition(
    payload: CompetitionCreate,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    competition = Competition(
        title=payload.title.strip(),
        description=payload.description,
        organizer_id=current_user.id,
        status=CompetitionStatus.UPCOMING,
    )
    db.add(competition)
    await db.commit()
    return competition


@router.get("/{competition_id}", response_model=CompetitionOut)
async def competition_detail(competition_id: int, db: AsyncSession = Depends(get_db)):
    return await get_competition(db, competition_id)

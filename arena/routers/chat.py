"""Chat router – message history and posting for a team's members."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from arena.database import get_db
from arena.models.user import User
from arena.routers.auth import require_user
from arena.schemas.chat import ChatHistoryOut, MessageCreate, MessageOut
from arena.services import chat

router = APIRouter(prefix="/teams", tags=["chat"])


@router.get("/{team_id}/messages", response_model=ChatHistoryOut)
async def chat_history(
    team_id: int,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    """Returns the last 50 messages for the team."""
    lines = await chat.list_messages(db, current_user, team_id)
    return ChatHistoryOut(
        messages=[
            MessageOut(
                id=line.message.id,
                team_id=line.message.team_id,
                sender_id=line.message.sender_id,
                sender_name=line.sender_name,
                message=line.message.message,
                created_at=line.message.created_at,
            )
            for line in lines
        ]
    )


@router.post("/{team_id}/messages", response_model=MessageOut, status_code=status.HTTP_201_CREATED)
async def send_message(
    team_id: int,
    payload: MessageCreate,
    current_user: User = Depends(require_user),
    db: AsyncSession = Depends(get_db),
):
    msg = await chat.post_message(db, current_user, team_id, payload.message)
    return MessageOut(
        id=msg.id,
        team_id=msg.team_id,
        sender_id=msg.sender_id,
        sender_name=current_user.full_name,
        message=msg.message,
        created_at=msg.created_at,
    )

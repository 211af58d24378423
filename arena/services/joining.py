"""Seeker-side flow: declare skills, find matching teams, ask to join."""

import logging
from dataclasses import dataclass, field
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager

from arena.config import settings
from arena.database import atomic
from arena.exceptions import AlreadyMember, DuplicateJoinRequest, ValidationFailed
from arena.models.join_intent import IntentStatus, JoinIntent
from arena.models.join_request import RequestStatus, TeamJoinRequest
from arena.models.notification import NotificationKind
from arena.models.team import Team, TeamNeed
from arena.models.team_member import TeamMember
from arena.models.user import User
from arena.services import events
from arena.services.matching import ScoredTeam, rank, save_suggestions, score_teams
from arena.services.notifications import notify
from arena.services.skills import ensure_skill_ids, normalize_skill_names, replace_user_skills
from arena.services.teams import (
    get_competition,
    get_member,
    get_team,
    seated_team_id,
    upsert_registration,
)

logger = logging.getLogger(__name__)

NO_TEAM_MESSAGE = (
    "So far no team is found for these skills. You have been marked as pending "
    "for this competition; captains can invite you when they need your skills."
)
SEATED_NO_TEAM_MESSAGE = "No other team matches these skills. You already have a team in this competition."


@dataclass
class TeamSearch:
    skill_ids: List[int]
    teams: List[ScoredTeam] = field(default_factory=list)
    pending: bool = False
    message: str = ""


async def declare_skills(db: AsyncSession, user: User, skills: str) -> List[int]:
    """Replace the user's skill snapshot with ``skills``. Caller owns the transaction."""
    skill_ids = await ensure_skill_ids(db, skills)
    if not skill_ids:
        raise ValidationFailed("Enter at least one skill.")
    await replace_user_skills(db, user.id, skill_ids)
    return skill_ids


async def _record_intent(db: AsyncSession, user: User, competition_id: int, skill_ids: List[int]) -> bool:
    """
    Leave a pending intent for captains to discover. A failure here is logged
    and swallowed: the seeker still gets the "no team yet" answer.
    """
    try:
        async with atomic(db):
            await db.execute(
                delete(JoinIntent).where(
                    JoinIntent.user_id == user.id,
                    JoinIntent.competition_id == competition_id,
                    JoinIntent.status == IntentStatus.PENDING,
                )
            )
            db.add(JoinIntent(
                user_id=user.id,
                competition_id=competition_id,
                desired_skills=skill_ids,
                status=IntentStatus.PENDING,
            ))
    except SQLAlchemyError as e:
        logger.warning("join_intents insert failed for user %s: %s", user.id, e)
        return False
    return True


async def find_teams_for_user(
    db: AsyncSession, user: User, competition_id: int, skills: str
) -> TeamSearch:
    """Score every team need in the competition against the seeker's skills."""
    if not normalize_skill_names(skills):
        raise ValidationFailed("Enter at least one skill.")

    async with atomic(db):
        await get_competition(db, competition_id)
        skill_ids = await declare_skills(db, user, skills)

        result = await db.execute(
            select(TeamNeed)
            .join(TeamNeed.team)
            .where(Team.competition_id == competition_id)
            .options(contains_eager(TeamNeed.team))
        )
        needs = result.scalars().all()

        mine = await db.execute(
            select(TeamMember.team_id)
            .join(Team, Team.id == TeamMember.team_id)
            .where(TeamMember.user_id == user.id, Team.competition_id == competition_id)
        )
        scored = score_teams(needs, skill_ids, exclude_team_ids=mine.scalars().all())
        await save_suggestions(db, [(s.team.id, user.id, s.score) for s in scored])
        seated = await seated_team_id(db, user.id, competition_id)

    search = TeamSearch(skill_ids=skill_ids)
    if scored:
        search.teams = rank(scored, settings.SUGGESTED_TEAMS_LIMIT)
        return search

    if seated is not None:
        # Seated users are not looking; leave no intent behind for captains
        search.message = SEATED_NO_TEAM_MESSAGE
        return search

    await _record_intent(db, user, competition_id, skill_ids)
    search.pending = True
    search.message = NO_TEAM_MESSAGE
    logger.info("No team matched user %s in competition %s", user.id, competition_id)
    return search


async def request_to_join(db: AsyncSession, user: User, team_id: int) -> TeamJoinRequest:
    """
    File a pending join request. With ``REGISTER_ON_JOIN_REQUEST`` the team is
    also linked to its competition, ahead of the captain's decision.
    """
    try:
        async with atomic(db):
            team = await get_team(db, team_id)
            if await get_member(db, team.id, user.id) is not None:
                raise AlreadyMember("You are already in this team.")

            existing = await db.execute(
                select(TeamJoinRequest.id).where(
                    TeamJoinRequest.team_id == team.id,
                    TeamJoinRequest.user_id == user.id,
                )
            )
            if existing.scalar_one_or_none() is not None:
                raise DuplicateJoinRequest("You already asked to join this team.")

            req = TeamJoinRequest(team_id=team.id, user_id=user.id, status=RequestStatus.PENDING)
            db.add(req)
            await db.flush()

            if settings.REGISTER_ON_JOIN_REQUEST:
                await upsert_registration(db, team.id, team.competition_id)

            notif = await notify(
                db,
                team.owner_id,
                NotificationKind.JOIN_REQUEST,
                f"{user.full_name or user.email} requested to join {team.name}",
                team_id=team.id,
                link="/join-requests",
            )
    except IntegrityError:
        raise DuplicateJoinRequest("You already asked to join this team.")

    await events.join_request_created(req, team.owner_id)
    await events.notifications_created([notif])
    logger.info("User %s requested to join team %s", user.id, team.id)
    return req

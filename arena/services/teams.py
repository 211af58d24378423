"""
Captain-side team flow: create, declare needs, search candidates, invite,
register.

Each public operation is one transaction. Realtime pushes go out only after
the commit succeeded.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from arena.config import settings
from arena.database import atomic, upsert, utcnow
from arena.exceptions import (
    AlreadyMember,
    AlreadyOnTeam,
    ArenaError,
    DuplicateInvitation,
    NotFound,
    PermissionDenied,
    ValidationFailed,
)
from arena.models.competition import Competition
from arena.models.join_intent import IntentStatus, JoinIntent
from arena.models.notification import Notification, NotificationKind
from arena.models.team import Team, TeamNeed, TeamStatus
from arena.models.team_invitation import InvitationStatus, TeamInvitation
from arena.models.team_member import SEATED, MemberStatus, TeamMember
from arena.models.team_registration import RegistrationStatus, TeamRegistration
from arena.models.user import User
from arena.services import events
from arena.services.matching import (
    ScoredCandidate,
    group_intent_skills,
    rank,
    save_suggestions,
    score_candidates,
)
from arena.services.notifications import notify
from arena.services.skills import ensure_skill_ids
from arena.services.transitions import TEAM_TRANSITIONS, transition

logger = logging.getLogger(__name__)


@dataclass
class NeedsResult:
    need: TeamNeed
    candidates: List[ScoredCandidate]
    status: TeamStatus


@dataclass
class InviteOutcome:
    user_id: int
    invitation: Optional[TeamInvitation] = None
    skipped: Optional[str] = None


@dataclass
class InviteBatch:
    outcomes: List[InviteOutcome] = field(default_factory=list)

    @property
    def invited(self) -> List[TeamInvitation]:
        return [o.invitation for o in self.outcomes if o.invitation is not None]


# ═══════════════════════════════════════════════════════════════
#  Lookups shared with the join and resolution flows
# ═══════════════════════════════════════════════════════════════

async def get_team(db: AsyncSession, team_id: int) -> Team:
    team = await db.get(Team, team_id)
    if team is None:
        raise NotFound("Team not found")
    return team


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


async def get_competition(db: AsyncSession, competition_id: int) -> Competition:
    competition = await db.get(Competition, competition_id)
    if competition is None:
        raise NotFound("Competition not found")
    return competition


def require_owner(team: Team, user: User) -> None:
    if team.owner_id != user.id:
        raise PermissionDenied("Only the team captain can do this.")


async def get_need(db: AsyncSession, team_id: int) -> Optional[TeamNeed]:
    result = await db.execute(
        select(TeamNeed)
        .where(TeamNeed.team_id == team_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def member_ids(db: AsyncSession, team_id: int) -> List[int]:
    result = await db.execute(select(TeamMember.user_id).where(TeamMember.team_id == team_id))
    return list(result.scalars().all())


async def get_member(db: AsyncSession, team_id: int, user_id: int) -> Optional[TeamMember]:
    result = await db.execute(
        select(TeamMember).where(TeamMember.team_id == team_id, TeamMember.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def seated_team_id(db: AsyncSession, user_id: int, competition_id: int) -> Optional[int]:
    """The team a user already holds a seat on in this competition, if any."""
    result = await db.execute(
        select(TeamMember.team_id)
        .join(Team, Team.id == TeamMember.team_id)
        .where(
            TeamMember.user_id == user_id,
            TeamMember.status.in_(SEATED),
            Team.competition_id == competition_id,
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def drop_intents(db: AsyncSession, user_id: int, competition_id: int) -> None:
    await db.execute(
        delete(JoinIntent).where(
            JoinIntent.user_id == user_id,
            JoinIntent.competition_id == competition_id,
        )
    )


async def add_member(
    db: AsyncSession,
    team: Team,
    user_id: int,
    is_captain: bool = False,
    role_pref: Optional[str] = None,
) -> TeamMember:
    """
    Seat a user on a team, holding the one-team-per-competition rule.

    A seated user stops looking, so their join intents for the competition
    are dropped in the same transaction.
    """
    seated = await seated_team_id(db, user_id, team.competition_id)
    if seated == team.id:
        raise AlreadyMember("This person is already in the team.")
    if seated is not None:
        raise AlreadyOnTeam("Already on another team for this competition.")

    member = TeamMember(
        team_id=team.id,
        user_id=user_id,
        is_captain=is_captain,
        status=MemberStatus.ACCEPTED,
        role_pref=role_pref,
    )
    db.add(member)
    await db.flush()
    await drop_intents(db, user_id, team.competition_id)
    return member


async def upsert_registration(db: AsyncSession, team_id: int, competition_id: int) -> TeamRegistration:
    """Idempotently link a team to a competition."""
    await upsert(
        db,
        TeamRegistration,
        [{
            "team_id": team_id,
            "competition_id": competition_id,
            "status": RegistrationStatus.REGISTERED,
            "registered_at": utcnow(),
        }],
        conflict=["team_id", "competition_id"],
    )
    result = await db.execute(
        select(TeamRegistration).where(
            TeamRegistration.team_id == team_id,
            TeamRegistration.competition_id == competition_id,
        )
    )
    return result.scalar_one()


# ═══════════════════════════════════════════════════════════════
#  Step 1: Create team
# ═══════════════════════════════════════════════════════════════

async def create_team(db: AsyncSession, owner: User, competition_id: int, name: str) -> Team:
    """Insert the team with its owner seated as the sole accepted captain."""
    name = (name or "").strip()
    if not name:
        raise ValidationFailed("Team name is required.")

    async with atomic(db):
        await get_competition(db, competition_id)
        team = Team(
            competition_id=competition_id,
            owner_id=owner.id,
            name=name,
            status=TeamStatus.OPEN,
        )
        db.add(team)
        await db.flush()  # to get team.id
        await add_member(db, team, owner.id, is_captain=True, role_pref="captain")

    logger.info("User %s created team %s for competition %s", owner.id, team.id, competition_id)
    return team


# ═══════════════════════════════════════════════════════════════
#  Step 2/3: Needs and candidate search
# ═══════════════════════════════════════════════════════════════

async def search_candidates(db: AsyncSession, team: Team) -> List[ScoredCandidate]:
    """
    Score pending join intents of the team's competition against its need.

    Every nonzero match is cached as a suggestion; the best
    ``CANDIDATE_LIMIT`` are returned. With nobody to suggest the team is
    parked as pending, otherwise it is open.
    """
    need = await get_need(db, team.id)
    need_ids = list(need.needed_skills or []) if need else []

    candidates: List[ScoredCandidate] = []
    if need_ids:
        result = await db.execute(
            select(JoinIntent).where(
                JoinIntent.competition_id == team.competition_id,
                JoinIntent.status == IntentStatus.PENDING,
            )
        )
        exclude = set(await member_ids(db, team.id))
        exclude.add(team.owner_id)
        scored = score_candidates(need_ids, group_intent_skills(result.scalars().all()), exclude)
        await save_suggestions(db, [(team.id, c.user_id, c.score) for c in scored])
        candidates = rank(scored, settings.CANDIDATE_LIMIT)

    target = TeamStatus.OPEN if candidates else TeamStatus.PENDING
    team.status = transition(TEAM_TRANSITIONS, team.status, target)
    await db.flush()
    return candidates


async def find_candidates(db: AsyncSession, owner: User, team_id: int) -> List[ScoredCandidate]:
    async with atomic(db):
        team = await get_team(db, team_id)
        require_owner(team, owner)
        candidates = await search_candidates(db, team)
    return candidates


async def declare_needs(
    db: AsyncSession,
    owner: User,
    team_id: int,
    needed_role: Optional[str],
    skills: str,
) -> NeedsResult:
    """Upsert the team's need, then run the candidate search against it."""
    async with atomic(db):
        team = await get_team(db, team_id)
        require_owner(team, owner)

        need_ids = await ensure_skill_ids(db, skills)
        await upsert(
            db,
            TeamNeed,
            [{
                "team_id": team.id,
                "needed_role": (needed_role or "").strip() or None,
                "needed_skills": need_ids,
                "updated_at": utcnow(),
            }],
            conflict=["team_id"],
            update=["needed_role", "needed_skills", "updated_at"],
        )
        candidates = await search_candidates(db, team)
        need = await get_need(db, team.id)

    logger.info(
        "Team %s needs %d skills; %d candidates found", team.id, len(need_ids), len(candidates)
    )
    return NeedsResult(need=need, candidates=candidates, status=team.status)


# ═══════════════════════════════════════════════════════════════
#  Step 4: Invitations
# ═══════════════════════════════════════════════════════════════

async def _check_invitable(db: AsyncSession, team: Team, user_id: int) -> None:
    if user_id == team.owner_id:
        raise ValidationFailed("The captain cannot invite themselves.")
    await get_user(db, user_id)

    if await get_member(db, team.id, user_id) is not None:
        raise AlreadyMember("This person is already in your team.")

    result = await db.execute(
        select(TeamInvitation.status).where(
            TeamInvitation.team_id == team.id,
            TeamInvitation.user_id == user_id,
        )
    )
    if result.scalar_one_or_none() is not None:
        raise DuplicateInvitation("You already invited this person. Waiting for their response.")


async def _create_invitation(
    db: AsyncSession, team: Team, owner: User, user_id: int
) -> Tuple[TeamInvitation, Notification]:
    await _check_invitable(db, team, user_id)

    inv = TeamInvitation(team_id=team.id, user_id=user_id, status=InvitationStatus.PENDING)
    db.add(inv)
    await db.flush()

    notif = await notify(
        db,
        user_id,
        NotificationKind.INVITATION,
        f"{owner.full_name or owner.email} invited you to join {team.name}",
        team_id=team.id,
        link="/invitations",
    )
    return inv, notif


async def invite_user(db: AsyncSession, owner: User, team_id: int, user_id: int) -> TeamInvitation:
    """Invite one candidate, refusing duplicates and existing members."""
    try:
        async with atomic(db):
            team = await get_team(db, team_id)
            require_owner(team, owner)
            inv, notif = await _create_invitation(db, team, owner, user_id)
    except IntegrityError:
        # Lost a race with a concurrent invite for the same pair
        raise DuplicateInvitation("You already invited this person. Waiting for their response.")

    await events.invitation_created(inv)
    await events.notifications_created([notif])
    return inv


async def send_invitations(
    db: AsyncSession, owner: User, team_id: int, user_ids: Iterable[int]
) -> InviteBatch:
    """
    Invite several candidates in one transaction.

    Candidates the guard refuses are reported as skipped rather than failing
    the batch.
    """
    batch = InviteBatch()
    notifs: List[Notification] = []
    try:
        async with atomic(db):
            team = await get_team(db, team_id)
            require_owner(team, owner)
            for user_id in dict.fromkeys(user_ids):
                try:
                    inv, notif = await _create_invitation(db, team, owner, user_id)
                except ArenaError as e:
                    batch.outcomes.append(InviteOutcome(user_id=user_id, skipped=e.detail))
                    continue
                batch.outcomes.append(InviteOutcome(user_id=user_id, invitation=inv))
                notifs.append(notif)
    except IntegrityError:
        raise DuplicateInvitation("Another invitation for one of these people was just sent.")

    for inv in batch.invited:
        await events.invitation_created(inv)
    await events.notifications_created(notifs)
    logger.info(
        "Team %s invited %d of %d candidates", team_id, len(batch.invited), len(batch.outcomes)
    )
    return batch


# ═══════════════════════════════════════════════════════════════
#  Step 5: Registration
# ═══════════════════════════════════════════════════════════════

async def register_team(db: AsyncSession, owner: User, team_id: int) -> TeamRegistration:
    async with atomic(db):
        team = await get_team(db, team_id)
        require_owner(team, owner)
        registration = await upsert_registration(db, team.id, team.competition_id)
    logger.info("Team %s registered for competition %s", team.id, team.competition_id)
    return registration

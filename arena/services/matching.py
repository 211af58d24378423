"""Service logic for matching users to teams and vice versa."""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from arena.database import upsert, utcnow
from arena.models.join_intent import JoinIntent
from arena.models.match_suggestion import TeamMatchSuggestion
from arena.models.team import Team, TeamNeed


@dataclass
class ScoredCandidate:
    user_id: int
    score: float


@dataclass
class ScoredTeam:
    team: Team
    score: float
    needed_role: Optional[str] = None


Scored = TypeVar("Scored", ScoredCandidate, ScoredTeam)


def score_overlap(required: Sequence[int], candidate: Iterable[int]) -> float:
    """
    Coverage ratio of ``required`` by ``candidate``, in [0, 1].

    Counted over the required sequence, so a skill listed twice counts twice.
    An empty requirement scores 0.
    """
    if not required:
        return 0.0
    have = set(candidate)
    matched = sum(1 for skill_id in required if skill_id in have)
    return matched / len(required)


def rank(scored: List[Scored], limit: Optional[int] = None) -> List[Scored]:
    """Best-first; ties keep their original order."""
    ordered = sorted(scored, key=lambda s: s.score, reverse=True)
    return ordered[:limit] if limit is not None else ordered


def group_intent_skills(intents: Iterable[JoinIntent]) -> Dict[int, Set[int]]:
    """Union the desired skills of every intent a user holds."""
    by_user: Dict[int, Set[int]] = {}
    for intent in intents:
        by_user.setdefault(intent.user_id, set()).update(intent.desired_skills or [])
    return by_user


def score_candidates(
    need_ids: Sequence[int],
    skills_by_user: Dict[int, Set[int]],
    exclude: Iterable[int] = (),
) -> List[ScoredCandidate]:
    """Score seekers against a team's need; zero scores are dropped."""
    excluded = set(exclude)
    scored = []
    for user_id, skills in skills_by_user.items():
        if user_id in excluded:
            continue
        score = score_overlap(need_ids, skills)
        if score > 0:
            scored.append(ScoredCandidate(user_id=user_id, score=score))
    return scored


def score_teams(
    needs: Iterable[TeamNeed],
    skill_ids: Sequence[int],
    exclude_team_ids: Iterable[int] = (),
) -> List[ScoredTeam]:
    """Score every team need against one seeker's skills; zero scores are dropped."""
    excluded = set(exclude_team_ids)
    scored = []
    for need in needs:
        if need.team is None or need.team_id in excluded:
            continue
        score = score_overlap(need.needed_skills or [], skill_ids)
        if score > 0:
            scored.append(ScoredTeam(team=need.team, score=score, needed_role=need.needed_role))
    return scored


async def save_suggestions(db: AsyncSession, pairs: Iterable[tuple]) -> None:
    """Upsert ``(team_id, user_id, score)`` triples into the suggestion cache."""
    now = utcnow()
    rows = [
        {
            "team_id": team_id,
            "user_id": user_id,
            "score": score,
            "premium_boost": False,
            "updated_at": now,
        }
        for team_id, user_id, score in pairs
    ]
    await upsert(
        db,
        TeamMatchSuggestion,
        rows,
        conflict=["team_id", "user_id"],
        update=["score", "premium_boost", "updated_at"],
    )

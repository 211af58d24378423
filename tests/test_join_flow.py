import pytest
from sqlalchemy import func, select

from arena.config import settings
from arena.exceptions import AlreadyMember, DuplicateJoinRequest, NotFound, ValidationFailed
from arena.models.join_intent import JoinIntent
from arena.models.join_request import RequestStatus, TeamJoinRequest
from arena.models.match_suggestion import TeamMatchSuggestion
from arena.models.notification import Notification, NotificationKind
from arena.models.skill import UserSkill
from arena.models.team_registration import TeamRegistration
from arena.services import joining, resolution, teams


@pytest.fixture(name="alpha")
async def alpha_fixture(db, make_user, make_competition):
    captain = await make_user("captain@example.com", "Cara Captain")
    competition = await make_competition(captain)
    team = await teams.create_team(db, captain, competition.id, "Alpha")
    await teams.declare_needs(db, captain, team.id, "Frontend", "React, SQL")
    return captain, competition, team


async def test_search_ranks_matching_team_and_saves_skills(db, alpha, make_user):
    captain, competition, team = alpha
    seeker = await make_user("seeker@example.com")

    search = await joining.find_teams_for_user(db, seeker, competition.id, "react, node")

    assert not search.pending
    assert [(s.team.id, s.score, s.needed_role) for s in search.teams] == [
        (team.id, 0.5, "Frontend")
    ]
    skills = await db.execute(select(UserSkill).where(UserSkill.user_id == seeker.id))
    assert len(skills.scalars().all()) == 2


async def test_search_hides_teams_the_user_is_on(db, alpha):
    captain, competition, _ = alpha
    search = await joining.find_teams_for_user(db, captain, competition.id, "React")
    assert search.teams == []
    assert not search.pending
    assert search.message == joining.SEATED_NO_TEAM_MESSAGE

    intents = await db.execute(select(JoinIntent).where(JoinIntent.user_id == captain.id))
    assert intents.scalars().all() == []


async def test_search_without_match_leaves_one_pending_intent(db, alpha, make_user):
    _, competition, _ = alpha
    seeker = await make_user("seeker@example.com")

    first = await joining.find_teams_for_user(db, seeker, competition.id, "Rust")
    second = await joining.find_teams_for_user(db, seeker, competition.id, "Haskell, Rust")

    assert first.pending and second.pending
    assert second.message == joining.NO_TEAM_MESSAGE
    result = await db.execute(select(JoinIntent).where(JoinIntent.user_id == seeker.id))
    intents = result.scalars().all()
    assert len(intents) == 1
    assert intents[0].desired_skills == second.skill_ids


async def test_search_requires_skills(db, alpha, make_user):
    _, competition, _ = alpha
    seeker = await make_user("seeker@example.com")
    with pytest.raises(ValidationFailed):
        await joining.find_teams_for_user(db, seeker, competition.id, " , ")


async def test_search_unknown_competition(db, alpha, make_user):
    _, competition, _ = alpha
    seeker = await make_user("seeker@example.com")
    with pytest.raises(NotFound):
        await joining.find_teams_for_user(db, seeker, competition.id + 1, "React")


async def test_join_request_notifies_owner_and_registers_team(db, alpha, make_user, events):
    captain, competition, team = alpha
    seeker = await make_user("seeker@example.com", "Sam Seeker")

    req = await joining.request_to_join(db, seeker, team.id)

    assert req.status.value == "pending"
    notifs = await db.execute(select(Notification).where(Notification.user_id == captain.id))
    [notif] = notifs.scalars().all()
    assert notif.kind == NotificationKind.JOIN_REQUEST
    assert "Sam Seeker" in notif.message

    regs = await db.execute(select(func.count(TeamRegistration.id)))
    assert regs.scalar() == 1

    assert events[0].table == "team_join_requests"
    assert events[0].new["owner_id"] == captain.id


async def test_join_request_without_speculative_registration(db, alpha, make_user, monkeypatch):
    _, _, team = alpha
    seeker = await make_user("seeker@example.com")
    monkeypatch.setattr(settings, "REGISTER_ON_JOIN_REQUEST", False)

    await joining.request_to_join(db, seeker, team.id)

    regs = await db.execute(select(func.count(TeamRegistration.id)))
    assert regs.scalar() == 0


async def test_duplicate_join_request_is_refused(db, alpha, make_user):
    _, _, team = alpha
    seeker = await make_user("seeker@example.com")
    team_id = team.id

    await joining.request_to_join(db, seeker, team_id)
    with pytest.raises(DuplicateJoinRequest):
        await joining.request_to_join(db, seeker, team_id)


async def test_member_cannot_request_to_join(db, alpha):
    captain, _, team = alpha
    with pytest.raises(AlreadyMember):
        await joining.request_to_join(db, captain, team.id)


async def test_seated_member_search_leaves_no_intent(db, alpha, make_user):
    captain, competition, team = alpha
    member = await make_user("member@example.com")
    inv = await teams.invite_user(db, captain, team.id, member.id)
    await resolution.respond_to_invitation(db, member, inv.id, accept=True)

    search = await joining.find_teams_for_user(db, member, competition.id, "Cobol")

    assert not search.pending
    intents = await db.execute(select(JoinIntent).where(JoinIntent.user_id == member.id))
    assert intents.scalars().all() == []


async def test_seeker_who_founds_a_team_drops_out_of_candidates(db, alpha, make_user):
    captain, competition, _ = alpha
    bob = await make_user("bob@example.com")
    await joining.find_teams_for_user(db, bob, competition.id, "Rust")
    bob_id = bob.id

    await teams.create_team(db, bob, competition.id, "Bravo")

    intents = await db.execute(select(JoinIntent).where(JoinIntent.user_id == bob_id))
    assert intents.scalars().all() == []

    other = await make_user("other@example.com")
    team = await teams.create_team(db, other, competition.id, "Charlie")
    result = await teams.declare_needs(db, other, team.id, None, "Rust")
    assert result.candidates == []


async def test_suggested_teams_are_capped(db, alpha, make_user):
    _, competition, _ = alpha
    for i in range(settings.SUGGESTED_TEAMS_LIMIT + 1):
        owner = await make_user(f"owner{i}@example.com")
        team = await teams.create_team(db, owner, competition.id, f"Team {i}")
        await teams.declare_needs(db, owner, team.id, None, "Rust")
    seeker = await make_user("seeker@example.com")

    search = await joining.find_teams_for_user(db, seeker, competition.id, "Rust")

    assert len(search.teams) == settings.SUGGESTED_TEAMS_LIMIT
    assert all(s.score == 1.0 for s in search.teams)
    cached = await db.execute(
        select(func.count()).select_from(TeamMatchSuggestion).where(
            TeamMatchSuggestion.user_id == seeker.id
        )
    )
    assert cached.scalar() == settings.SUGGESTED_TEAMS_LIMIT + 1


async def test_join_request_lost_race_is_a_duplicate(db, alpha, make_user, race_insert):
    _, _, team = alpha
    seeker = await make_user("seeker@example.com")
    team_id, seeker_id = team.id, seeker.id
    fired = race_insert(TeamJoinRequest, ("team_id", "user_id"), status=RequestStatus.PENDING)

    with pytest.raises(DuplicateJoinRequest):
        await joining.request_to_join(db, seeker, team_id)

    assert fired
    rows = await db.execute(
        select(func.count(TeamJoinRequest.id)).where(TeamJoinRequest.user_id == seeker_id)
    )
    assert rows.scalar() == 0

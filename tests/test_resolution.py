import pytest
from sqlalchemy import select

from arena.exceptions import AlreadyOnTeam, NotFound, PermissionDenied
from arena.models.join_intent import JoinIntent
from arena.models.join_request import TeamJoinRequest
from arena.models.notification import Notification, NotificationKind
from arena.models.team_invitation import TeamInvitation
from arena.services import joining, resolution, teams


@pytest.fixture(name="alpha")
async def alpha_fixture(db, make_user, make_competition):
    captain = await make_user("captain@example.com", "Cara Captain")
    competition = await make_competition(captain)
    team = await teams.create_team(db, captain, competition.id, "Alpha")
    return captain, competition, team


async def _notifications(db, user_id):
    result = await db.execute(select(Notification).where(Notification.user_id == user_id))
    return result.scalars().all()


async def test_accepting_invitation_seats_invitee_and_clears_intent(db, alpha, make_user, events):
    captain, competition, team = alpha
    seeker = await make_user("seeker@example.com", "Sam Seeker")
    await joining.find_teams_for_user(db, seeker, competition.id, "Elixir")
    inv = await teams.invite_user(db, captain, team.id, seeker.id)
    events.clear()

    decision = await resolution.respond_to_invitation(db, seeker, inv.id, accept=True)

    assert decision.status == "accepted"
    assert decision.member.user_id == seeker.id
    assert await teams.get_member(db, team.id, seeker.id) is not None
    assert await db.get(TeamInvitation, inv.id) is None
    intents = await db.execute(select(JoinIntent).where(JoinIntent.user_id == seeker.id))
    assert intents.scalars().all() == []

    [notif] = await _notifications(db, captain.id)
    assert notif.kind == NotificationKind.DECISION
    assert "accepted" in notif.message
    assert (events[0].table, events[0].event) == ("team_invitations", "DELETE")
    assert events[0].old["id"] == inv.id


async def test_rejecting_invitation_allows_a_fresh_invite(db, alpha, make_user):
    captain, _, team = alpha
    seeker = await make_user("seeker@example.com")
    inv = await teams.invite_user(db, captain, team.id, seeker.id)

    decision = await resolution.respond_to_invitation(db, seeker, inv.id, accept=False)

    assert decision.status == "rejected"
    assert await teams.get_member(db, team.id, seeker.id) is None
    again = await teams.invite_user(db, captain, team.id, seeker.id)
    assert again.id is not None


async def test_captain_can_withdraw_but_not_accept(db, alpha, make_user):
    captain, _, team = alpha
    seeker = await make_user("seeker@example.com")
    inv = await teams.invite_user(db, captain, team.id, seeker.id)
    inv_id, seeker_id = inv.id, seeker.id

    with pytest.raises(PermissionDenied):
        await resolution.respond_to_invitation(db, captain, inv_id, accept=True)

    await db.refresh(captain)
    decision = await resolution.respond_to_invitation(db, captain, inv_id, accept=False)
    assert decision.status == "rejected"
    [notif] = [n for n in await _notifications(db, seeker_id) if n.kind == NotificationKind.DECISION]
    assert "withdrew" in notif.message


async def test_stranger_cannot_answer_invitation(db, alpha, make_user):
    captain, _, team = alpha
    seeker = await make_user("seeker@example.com")
    stranger = await make_user("stranger@example.com")
    inv = await teams.invite_user(db, captain, team.id, seeker.id)
    with pytest.raises(PermissionDenied):
        await resolution.respond_to_invitation(db, stranger, inv.id, accept=False)


async def test_answered_invitation_is_gone(db, alpha, make_user):
    captain, _, team = alpha
    seeker = await make_user("seeker@example.com")
    inv = await teams.invite_user(db, captain, team.id, seeker.id)
    inv_id = inv.id
    await resolution.respond_to_invitation(db, seeker, inv_id, accept=False)
    with pytest.raises(NotFound):
        await resolution.respond_to_invitation(db, seeker, inv_id, accept=True)


async def test_seat_on_one_team_per_competition(db, alpha, make_user):
    captain, competition, alpha_team = alpha
    other_captain = await make_user("other@example.com")
    seeker = await make_user("seeker@example.com")
    beta = await teams.create_team(db, other_captain, competition.id, "Beta")

    first = await teams.invite_user(db, captain, alpha_team.id, seeker.id)
    second = await teams.invite_user(db, other_captain, beta.id, seeker.id)
    second_id = second.id
    await resolution.respond_to_invitation(db, seeker, first.id, accept=True)

    with pytest.raises(AlreadyOnTeam):
        await resolution.respond_to_invitation(db, seeker, second_id, accept=True)
    # The failed accept rolled back; the invitation is still open
    assert await db.get(TeamInvitation, second_id) is not None


async def test_two_requests_accepted_into_same_team(db, alpha, make_user):
    captain, _, team = alpha
    ann = await make_user("ann@example.com")
    bob = await make_user("bob@example.com")
    ann_req = await joining.request_to_join(db, ann, team.id)
    bob_req = await joining.request_to_join(db, bob, team.id)

    rows = await resolution.list_join_requests_for_owner(db, captain)
    assert {req.id for req, _, _ in rows} == {ann_req.id, bob_req.id}

    await resolution.respond_to_join_request(db, captain, ann_req.id, accept=True)
    await resolution.respond_to_join_request(db, captain, bob_req.id, accept=True)

    assert set(await teams.member_ids(db, team.id)) == {captain.id, ann.id, bob.id}
    remaining = await db.execute(select(TeamJoinRequest))
    assert remaining.scalars().all() == []
    [notif] = await _notifications(db, bob.id)
    assert "accepted" in notif.message


async def test_only_owner_answers_join_requests(db, alpha, make_user):
    _, _, team = alpha
    seeker = await make_user("seeker@example.com")
    req = await joining.request_to_join(db, seeker, team.id)
    with pytest.raises(PermissionDenied):
        await resolution.respond_to_join_request(db, seeker, req.id, accept=True)


async def test_rejected_join_request_leaves_team_unchanged(db, alpha, make_user):
    captain, _, team = alpha
    seeker = await make_user("seeker@example.com")
    req = await joining.request_to_join(db, seeker, team.id)

    decision = await resolution.respond_to_join_request(db, captain, req.id, accept=False)

    assert decision.status == "rejected"
    assert await teams.member_ids(db, team.id) == [captain.id]
    assert await db.get(TeamJoinRequest, req.id) is None


async def test_accepted_join_request_clears_requester_intent(db, alpha, make_user):
    captain, competition, team = alpha
    seeker = await make_user("seeker@example.com")
    search = await joining.find_teams_for_user(db, seeker, competition.id, "Elixir")
    assert search.pending
    req = await joining.request_to_join(db, seeker, team.id)

    await resolution.respond_to_join_request(db, captain, req.id, accept=True)

    intents = await db.execute(select(JoinIntent).where(JoinIntent.user_id == seeker.id))
    assert intents.scalars().all() == []


async def test_rejected_join_request_keeps_requester_intent(db, alpha, make_user):
    captain, competition, team = alpha
    seeker = await make_user("seeker@example.com")
    await joining.find_teams_for_user(db, seeker, competition.id, "Elixir")
    req = await joining.request_to_join(db, seeker, team.id)

    await resolution.respond_to_join_request(db, captain, req.id, accept=False)

    intents = await db.execute(select(JoinIntent).where(JoinIntent.user_id == seeker.id))
    assert len(intents.scalars().all()) == 1

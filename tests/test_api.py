import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from arena.main import app
from arena.routers.auth import create_access_token, decode_user_id


@pytest.fixture(name="people")
async def people_fixture(make_user, make_competition):
    captain = await make_user("cara@example.com", "Cara Captain")
    seeker = await make_user("sam@example.com", "Sam Seeker")
    competition = await make_competition(captain)
    return captain, seeker, competition.id


async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


async def test_requires_authentication(client):
    response = await client.post("/teams", json={"name": "Alpha", "competition_id": 1})
    assert response.status_code == 401


def test_token_round_trip():
    token = create_access_token({"sub": "42"})
    assert decode_user_id(token) == 42
    assert decode_user_id("not-a-jwt") is None
    assert decode_user_id(None) is None


def test_realtime_socket_rejects_missing_token():
    with pytest.raises(WebSocketDisconnect) as exc:
        with TestClient(app).websocket_connect("/realtime/ws"):
            pass
    assert exc.value.code == 1008


async def test_alpha_scenario_both_sides_see_each_other(client, login, people):
    captain, seeker, competition_id = people
    captain_id, seeker_id = captain.id, seeker.id

    login(seeker)
    response = await client.post(
        "/match/teams-for-me", json={"competition_id": competition_id, "skills": "React, SQL"}
    )
    assert response.status_code == 200
    assert response.json()["pending"] is True
    assert response.json()["teams"] == []

    login(captain)
    response = await client.post("/teams", json={"name": "Alpha", "competition_id": competition_id})
    assert response.status_code == 201
    team_id = response.json()["id"]

    response = await client.put(
        f"/teams/{team_id}/needs", json={"needed_role": "Frontend", "skills": "react, node"}
    )
    body = response.json()
    assert response.status_code == 200
    assert body["status"] == "open"
    assert body["need"]["skill_slugs"] == ["react", "node"]
    assert body["candidates"] == [{"user_id": seeker_id, "full_name": "Sam Seeker", "score": 0.5}]

    login(seeker)
    response = await client.post(
        "/match/teams-for-me", json={"competition_id": competition_id, "skills": "React, SQL"}
    )
    body = response.json()
    assert body["pending"] is False
    assert [(t["team"]["id"], t["score"]) for t in body["teams"]] == [(team_id, 0.5)]
    assert body["teams"][0]["team"]["owner_id"] == captain_id

    response = await client.get("/users/me/skills")
    assert [s["slug"] for s in response.json()["skills"]] == ["react", "sql"]


async def test_invitation_round_trip(client, login, people):
    captain, seeker, competition_id = people
    captain_id, seeker_id = captain.id, seeker.id

    login(captain)
    team_id = (
        await client.post("/teams", json={"name": "Alpha", "competition_id": competition_id})
    ).json()["id"]

    response = await client.post(f"/teams/{team_id}/invitations", json={"user_ids": [seeker_id]})
    assert response.status_code == 201
    assert response.json()["invited"] == 1

    response = await client.post(f"/teams/{team_id}/invitations", json={"user_ids": [seeker_id]})
    assert response.json()["invited"] == 0
    assert "already invited" in response.json()["outcomes"][0]["skipped"]

    login(seeker)
    invitations = (await client.get("/invitations")).json()
    assert [(i["team_id"], i["team_name"]) for i in invitations] == [(team_id, "Alpha")]

    notes = (await client.get("/notifications")).json()
    assert notes["unread_count"] == 1
    assert notes["notifications"][0]["kind"] == "invitation"

    response = await client.post(
        f"/invitations/{invitations[0]['id']}/respond", json={"action": "accept"}
    )
    assert response.status_code == 200
    assert response.json() == {"status": "accepted", "team_id": team_id, "user_id": seeker_id}
    assert (await client.get("/invitations")).json() == []

    login(captain)
    detail = (await client.get(f"/teams/{team_id}")).json()
    assert [(m["user_id"], m["is_captain"]) for m in detail["members"]] == [
        (captain_id, True),
        (seeker_id, False),
    ]

    response = await client.post("/notifications/read-all")
    assert response.json() == {"ok": True}
    assert (await client.get("/notifications")).json()["unread_count"] == 0


async def test_join_request_round_trip(client, login, people):
    captain, seeker, competition_id = people
    seeker_id = seeker.id

    login(captain)
    team_id = (
        await client.post("/teams", json={"name": "Alpha", "competition_id": competition_id})
    ).json()["id"]

    login(seeker)
    response = await client.post(f"/match/join/{team_id}")
    assert response.status_code == 201
    assert response.json()["status"] == "pending"

    response = await client.post(f"/match/join/{team_id}")
    assert response.status_code == 409

    login(captain)
    requests = (await client.get("/join-requests")).json()
    assert [(r["user_id"], r["requester_name"]) for r in requests] == [(seeker_id, "Sam Seeker")]

    response = await client.post(
        f"/join-requests/{requests[0]['id']}/respond", json={"action": "reject"}
    )
    assert response.json()["status"] == "rejected"
    assert (await client.get("/join-requests")).json() == []

    detail = (await client.get(f"/teams/{team_id}")).json()
    assert len(detail["members"]) == 1


async def test_registration_endpoint_is_idempotent(client, login, people):
    captain, _, competition_id = people
    login(captain)
    team_id = (
        await client.post("/teams", json={"name": "Alpha", "competition_id": competition_id})
    ).json()["id"]

    first = (await client.post(f"/teams/{team_id}/registration")).json()
    second = (await client.post(f"/teams/{team_id}/registration")).json()

    assert first["id"] == second["id"]
    assert first["status"] == "registered"


async def test_domain_errors_map_to_status_codes(client, login, people):
    captain, seeker, competition_id = people
    login(captain)

    assert (await client.get("/teams/999")).status_code == 404
    response = await client.post("/teams", json={"name": " ", "competition_id": competition_id})
    assert response.status_code == 400
    assert response.json() == {"detail": "Team name is required."}

    team_id = (
        await client.post("/teams", json={"name": "Alpha", "competition_id": competition_id})
    ).json()["id"]

    login(seeker)
    response = await client.put(f"/teams/{team_id}/needs", json={"skills": "react"})
    assert response.status_code == 403

    response = await client.post(
        "/match/teams-for-me", json={"competition_id": competition_id, "skills": " , "}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Enter at least one skill."

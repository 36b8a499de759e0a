"""
HTTP API tests through FastAPI's TestClient.
"""
import pytest
from fastapi.testclient import TestClient

from database import get_settings
from tests.conftest import ADMIN_GROUP, make_token


def create_tournament(client, **overrides):
    payload = {"name": "Office Chess", "rounds": 3}
    payload.update(overrides)
    response = client.post("/api/tournaments", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def register(client, tournament_id, n):
    ids = []
    for i in range(1, n + 1):
        response = client.post("/api/register", json={
            "tournament_id": tournament_id,
            "name": f"Player {i}",
            "email": f"player{i}@example.com",
        })
        assert response.status_code == 201, response.text
        ids.append(response.json()["participant_id"])
    return ids


# ============ Auth ============

def test_missing_token_is_unauthorized(anon_client):
    assert anon_client.get("/api/tournaments").status_code == 401


def test_garbage_token_is_unauthorized(app):
    client = TestClient(app, headers={"Authorization": "Bearer not-a-jwt"})
    assert client.get("/api/tournaments").status_code == 401


def test_bearer_scheme_is_case_insensitive(app):
    token = make_token(name="Admin", email="admin@example.com", groups=[ADMIN_GROUP])
    client = TestClient(app, headers={"Authorization": f"bearer {token}"})

    assert client.get("/api/me").json()["email"] == "admin@example.com"


def test_other_auth_scheme_is_unauthorized(app):
    client = TestClient(app, headers={"Authorization": f"Basic {make_token()}"})
    assert client.get("/api/me").status_code == 401


def test_non_admin_cannot_create(user_client):
    response = user_client.post("/api/tournaments", json={"name": "Nope"})
    assert response.status_code == 403


def test_me_reports_claims(admin_client, user_client):
    admin = admin_client.get("/api/me").json()
    player = user_client.get("/api/me").json()

    assert admin["is_admin"] is True
    assert admin["email"] == "admin@example.com"
    assert player["is_admin"] is False


def test_dev_mode_injects_user(app, anon_client, test_settings):
    dev_settings = test_settings.model_copy(update={"dev_mode": True})
    app.dependency_overrides[get_settings] = lambda: dev_settings

    assert anon_client.get("/api/me").json()["is_admin"] is True
    assert anon_client.get("/api/me", params={"admin": "false"}).json()["is_admin"] is False


def test_no_admin_group_configured_means_no_admins(app, test_settings):
    app.dependency_overrides[get_settings] = lambda: test_settings.model_copy(update={"admin_group_id": ""})
    client = TestClient(app, headers={"Authorization": f"Bearer {make_token(groups=[''])}"})

    assert client.get("/api/me").json()["is_admin"] is False


# ============ Tournaments ============

def test_create_and_list(admin_client, user_client):
    created = create_tournament(admin_client, description="Lunch break games")

    assert created["status"] == "registration"
    assert created["format"] == "round-robin"
    assert created["round_duration_weeks"] == 2

    listed = user_client.get("/api/tournaments").json()
    assert [t["id"] for t in listed] == [created["id"]]


def test_create_uses_default_rounds(admin_client):
    created = admin_client.post("/api/tournaments", json={"name": "Defaults"}).json()
    assert created["rounds"] == 10


@pytest.mark.parametrize("payload", [
    {"name": ""},
    {"name": "Zero", "rounds": 0},
    {"name": "Extra", "colour": "red"},
])
def test_create_validation(admin_client, payload):
    assert admin_client.post("/api/tournaments", json=payload).status_code == 422


def test_too_many_rounds(admin_client):
    response = admin_client.post("/api/tournaments", json={"name": "Marathon", "rounds": 99})
    assert response.status_code == 400


def test_patch_only_touches_given_fields(admin_client):
    created = create_tournament(admin_client, description="keep me")

    response = admin_client.put(f"/api/tournaments/{created['id']}", json={"name": "Renamed"})

    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"
    assert response.json()["description"] == "keep me"


def test_patch_rejects_null_for_required_field(admin_client):
    created = create_tournament(admin_client)
    response = admin_client.put(f"/api/tournaments/{created['id']}", json={"rounds": None})
    assert response.status_code == 422


def test_unknown_tournament(admin_client):
    assert admin_client.get("/api/tournaments/12345").status_code == 404
    assert admin_client.post("/api/tournaments/12345/activate").status_code == 404


def test_delete_tournament(admin_client):
    created = create_tournament(admin_client)
    register(admin_client, created["id"], 2)

    assert admin_client.delete(f"/api/tournaments/{created['id']}").status_code == 204
    assert admin_client.get(f"/api/tournaments/{created['id']}").status_code == 404


# ============ Registration ============

def test_duplicate_registration_conflict(admin_client, user_client):
    created = create_tournament(admin_client)
    register(user_client, created["id"], 1)

    response = user_client.post("/api/register", json={
        "tournament_id": created["id"], "name": "Again", "email": "PLAYER1@example.com"
    })
    assert response.status_code == 409


def test_registration_unknown_tournament(user_client):
    response = user_client.post("/api/register", json={
        "tournament_id": 999, "name": "Lost", "email": "lost@example.com"
    })
    assert response.status_code == 404


def test_registration_rejects_bad_email(user_client, admin_client):
    created = create_tournament(admin_client)
    response = user_client.post("/api/register", json={
        "tournament_id": created["id"], "name": "Typo", "email": "not-an-email"
    })
    assert response.status_code == 422


def test_registration_rejects_blank_name(user_client, admin_client):
    created = create_tournament(admin_client)
    response = user_client.post("/api/register", json={
        "tournament_id": created["id"], "name": "   ", "email": "blank@example.com"
    })
    assert response.status_code == 422


def test_remove_participant(admin_client, user_client):
    created = create_tournament(admin_client)
    first, _ = register(user_client, created["id"], 2)

    assert user_client.delete(f"/api/participants/{first}").status_code == 403
    assert admin_client.delete(f"/api/participants/{first}").status_code == 204
    assert admin_client.get(f"/api/participants/{first}").status_code == 404


# ============ Full flow ============

def test_activation_requires_two_participants(admin_client):
    created = create_tournament(admin_client)
    register(admin_client, created["id"], 1)

    response = admin_client.post(f"/api/tournaments/{created['id']}/activate")

    assert response.status_code == 400
    assert admin_client.get(f"/api/tournaments/{created['id']}").json()["matches"] == []


def test_full_tournament_flow(admin_client, user_client):
    created = create_tournament(admin_client, rounds=3)
    tid = created["id"]
    register(user_client, tid, 5)

    # activation builds the whole schedule
    schedule = admin_client.post(f"/api/tournaments/{tid}/activate").json()
    assert schedule["status"] == "active"
    assert schedule["match_count"] == 6
    assert sorted(schedule["rounds"]) == ["1", "2", "3"]

    # registration is closed now
    late = user_client.post("/api/register", json={
        "tournament_id": tid, "name": "Late", "email": "late@example.com"
    })
    assert late.status_code == 400

    round_one = user_client.get(f"/api/tournaments/{tid}/matches", params={"round": 1}).json()
    assert len(round_one) == 2

    match = round_one[0]
    assert user_client.put(
        f"/api/matches/{match['id']}/result", json={"player1_score": 3, "player2_score": 1}
    ).status_code == 403

    recorded = admin_client.put(
        f"/api/matches/{match['id']}/result", json={"player1_score": 1, "player2_score": 3}
    ).json()
    assert recorded["winner_id"] == match["player2_id"]
    assert recorded["reported_by"] == "admin@example.com"

    standings = user_client.get(f"/api/tournaments/{tid}/standings").json()
    assert standings[0]["participant_id"] == match["player2_id"]
    assert standings[0]["wins"] == 1
    assert sum(row["wins"] for row in standings) == 1
    assert {row["participant_id"]: row["losses"] for row in standings}[match["player1_id"]] == 1

    detail = user_client.get(f"/api/tournaments/{tid}").json()
    assert len(detail["participants"]) == 5
    assert len(detail["matches"]) == 6
    assert detail["standings"] == standings

    # complete, reopen, regenerate
    assert admin_client.post(f"/api/tournaments/{tid}/complete").json()["status"] == "completed"
    assert admin_client.post(f"/api/tournaments/{tid}/regenerate").status_code == 400
    assert admin_client.post(f"/api/tournaments/{tid}/reopen").json()["status"] == "active"

    regenerated = admin_client.post(f"/api/tournaments/{tid}/regenerate").json()
    assert regenerated["match_count"] == 6
    assert len(admin_client.get(f"/api/tournaments/{tid}/matches").json()) == 6
    assert all(row["played"] == 0 for row in user_client.get(f"/api/tournaments/{tid}/standings").json())


@pytest.fixture
def active_match(admin_client):
    created = create_tournament(admin_client, rounds=1)
    register(admin_client, created["id"], 2)
    schedule = admin_client.post(f"/api/tournaments/{created['id']}/activate").json()
    return schedule["rounds"]["1"][0]


@pytest.mark.parametrize("body,status", [
    ({"player1_score": 2, "player2_score": 2}, 400),
    ({"player1_score": -1, "player2_score": 2}, 422),
    ({"player1_score": 1.5, "player2_score": 2}, 422),
    ({"player1_score": 3}, 422),
])
def test_bad_results_rejected(admin_client, active_match, body, status):
    response = admin_client.put(f"/api/matches/{active_match['id']}/result", json=body)
    assert response.status_code == status
    assert admin_client.get(f"/api/matches/{active_match['id']}").json()["winner_id"] is None


def test_foreign_winner_rejected(admin_client, active_match):
    response = admin_client.put(f"/api/matches/{active_match['id']}/result", json={
        "player1_score": 3, "player2_score": 0, "winner_id": 424242
    })
    assert response.status_code == 400


def test_clear_result(admin_client, active_match):
    url = f"/api/matches/{active_match['id']}/result"
    admin_client.put(url, json={"player1_score": 5, "player2_score": 0})

    cleared = admin_client.delete(url).json()

    assert cleared["winner_id"] is None
    assert cleared["player1_score"] is None


def test_status_patch_activates(admin_client):
    created = create_tournament(admin_client, rounds=2)
    register(admin_client, created["id"], 4)

    response = admin_client.put(f"/api/tournaments/{created['id']}", json={"status": "active"})

    assert response.status_code == 200
    assert len(admin_client.get(f"/api/tournaments/{created['id']}/matches").json()) == 4


def test_rounds_cannot_change_after_activation(admin_client):
    created = create_tournament(admin_client, rounds=3)
    register(admin_client, created["id"], 4)
    admin_client.post(f"/api/tournaments/{created['id']}/activate")

    response = admin_client.put(f"/api/tournaments/{created['id']}", json={"rounds": 1})

    assert response.status_code == 400
    assert admin_client.get(f"/api/tournaments/{created['id']}").json()["tournament"]["rounds"] == 3


# ============ System ============

def test_health(anon_client):
    assert anon_client.get("/health").json() == {"status": "healthy"}


def test_is_ready_needs_no_auth(anon_client):
    response = anon_client.get("/api/internal/is-ready")
    assert response.status_code == 200
    assert response.text == "OK"


def test_dev_reset_only_in_dev_mode(app, admin_client, test_settings):
    create_tournament(admin_client)
    assert admin_client.post("/api/dev/reset").status_code == 403

    app.dependency_overrides[get_settings] = lambda: test_settings.model_copy(update={"dev_mode": True})
    assert admin_client.post("/api/dev/reset").json() == {"status": "ok"}
    assert admin_client.get("/api/tournaments").json() == []

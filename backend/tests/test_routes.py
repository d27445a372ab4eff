"""
Scavenger Hunt Backend - HTTP Surface Tests
============================================

What:  End-to-end requests through middleware, the authorization gate,
       services and the exception handlers, against SQLite.

What we test:
    ✅ register / login status codes and body shapes
    ✅ 401 without or with a bad token, 403 without the admin role
    ✅ legacy user-auth-token header is accepted
    ✅ tokens of deleted accounts stop working
    ✅ user, waypoint and challenge CRUD status codes (200/201/204/400/404/409)
    ✅ participants: invite, lookup by user, state change, scoping to a challenge
    ✅ error envelope: error, message, details, request_id
"""

import pytest


class TestAuthRoutes:
    @pytest.mark.asyncio
    async def test_register_returns_user_id(self, test_client, account_payload):
        response = await test_client.post("/auth/register", json=account_payload)

        assert response.status_code == 201
        body = response.json()
        assert body["username"] == "a@b.com"
        assert "user-id" in body
        assert "password_hash" not in body

    @pytest.mark.asyncio
    async def test_register_duplicate_conflicts(self, test_client, account_payload):
        await test_client.post("/auth/register", json=account_payload)
        response = await test_client.post("/auth/register", json=account_payload)

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"
        assert response.json()["message"] == "account already exists"

    @pytest.mark.asyncio
    async def test_register_reports_every_violation(self, test_client):
        response = await test_client.post(
            "/auth/register",
            json={"username": "nope", "password": "short", "nickname": " ", "roles": ["king"]},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        fields = {v["field"] for v in body["details"]["violations"]}
        assert fields == {"username", "password", "nickname", "roles.0"}

    @pytest.mark.asyncio
    async def test_non_object_body_is_400(self, test_client):
        response = await test_client.post("/auth/login", json=["a@b.com", "password123"])
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_login_flow(self, test_client, account_payload):
        await test_client.post("/auth/register", json=account_payload)

        response = await test_client.post(
            "/auth/login", json={"username": "a@b.com", "password": "password123"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["token_type"] == "Bearer"
        assert body["expires_in"] > 0
        assert body["token"]

    @pytest.mark.asyncio
    async def test_login_wrong_password_401(self, test_client, account_payload):
        await test_client.post("/auth/register", json=account_payload)
        response = await test_client.post(
            "/auth/login", json={"username": "a@b.com", "password": "password999"}
        )
        assert response.status_code == 401
        assert response.json()["message"] == "invalid credentials"

    @pytest.mark.asyncio
    async def test_login_unknown_user_404(self, test_client):
        response = await test_client.post(
            "/auth/login", json={"username": "ghost@b.com", "password": "password123"}
        )
        assert response.status_code == 404


class TestGate:
    @pytest.mark.asyncio
    async def test_missing_token_401(self, test_client):
        response = await test_client.get("/users")

        assert response.status_code == 401
        assert response.json()["message"] == "missing or invalid token"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_garbage_token_401(self, test_client):
        response = await test_client.get("/users", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_player_forbidden_from_admin_routes(self, test_client, player_headers):
        users = await test_client.get("/users", headers=player_headers)
        waypoints = await test_client.get("/waypoints", headers=player_headers)

        assert users.status_code == 403
        assert users.json()["error"] == "forbidden"
        assert waypoints.status_code == 403

    @pytest.mark.asyncio
    async def test_player_can_read_single_user(self, test_client, player_headers):
        response = await test_client.get("/users/player@test.com", headers=player_headers)
        assert response.status_code == 200
        assert response.json()["roles"] == ["player"]

    @pytest.mark.asyncio
    async def test_legacy_header_accepted(self, test_client, admin_token):
        response = await test_client.get("/users", headers={"user-auth-token": admin_token})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_token_of_deleted_account_rejected(
        self, test_client, admin_headers, player_headers
    ):
        deleted = await test_client.delete("/users/player@test.com", headers=admin_headers)
        assert deleted.status_code == 204

        response = await test_client.get("/users/player@test.com", headers=player_headers)
        assert response.status_code == 401
        assert response.json()["message"] == "invalid token"


class TestUserRoutes:
    @pytest.mark.asyncio
    async def test_admin_crud_cycle(self, test_client, admin_headers, account_payload):
        created = await test_client.post("/users", json=account_payload, headers=admin_headers)
        assert created.status_code == 201
        assert "password_hash" not in created.json()

        updated = await test_client.put(
            "/users/a@b.com",
            json={"username": "a@b.com", "nickname": "Renamed"},
            headers=admin_headers,
        )
        assert updated.status_code == 200
        assert updated.json()["nickname"] == "Renamed"

        history = await test_client.get("/users/a@b.com/history", headers=admin_headers)
        assert history.status_code == 200
        assert [h["nickname"] for h in history.json()["history"]] == ["Renamed", "A"]

        deleted = await test_client.delete("/users/a@b.com", headers=admin_headers)
        assert deleted.status_code == 204

        again = await test_client.delete("/users/a@b.com", headers=admin_headers)
        assert again.status_code == 404
        assert again.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_update_path_body_mismatch(self, test_client, admin_headers, account_payload):
        await test_client.post("/users", json=account_payload, headers=admin_headers)
        response = await test_client.put(
            "/users/a@b.com",
            json={"username": "z@b.com", "nickname": "Z"},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert "must match" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_list_with_role_filter(self, test_client, admin_headers, account_payload):
        await test_client.post("/users", json=account_payload, headers=admin_headers)

        admins = await test_client.get("/users", params={"role": "admin"}, headers=admin_headers)
        bad = await test_client.get("/users", params={"role": "root"}, headers=admin_headers)

        assert [u["username"] for u in admins.json()["users"]] == ["admin@test.com"]
        assert bad.status_code == 400


class TestWaypointRoutes:
    @pytest.mark.asyncio
    async def test_sequence_lifecycle(self, test_client, admin_headers, sequence_payload):
        created = await test_client.post("/waypoints", json=sequence_payload, headers=admin_headers)
        assert created.status_code == 201
        assert created.json()["data"] == sequence_payload["data"]

        duplicate = await test_client.post("/waypoints", json=sequence_payload, headers=admin_headers)
        assert duplicate.status_code == 409

        summary = await test_client.get("/waypoints/summary", headers=admin_headers)
        assert summary.status_code == 200
        assert [s["waypoint_name"] for s in summary.json()["waypoint_sequences_summary"]] == ["tour"]

        deleted = await test_client.delete("/waypoints/tour", headers=admin_headers)
        assert deleted.status_code == 204

        missing = await test_client.get("/waypoints/tour", headers=admin_headers)
        assert missing.status_code == 404

        recreated = await test_client.post("/waypoints", json=sequence_payload, headers=admin_headers)
        assert recreated.status_code == 201

        history = await test_client.get("/waypoints/tour/history", headers=admin_headers)
        assert len(history.json()["history"]) == 2

    @pytest.mark.asyncio
    async def test_rename_through_update_rejected(self, test_client, admin_headers, sequence_payload):
        await test_client.post("/waypoints", json=sequence_payload, headers=admin_headers)
        response = await test_client.put(
            "/waypoints/tour",
            json=dict(sequence_payload, waypoint_name="other"),
            headers=admin_headers,
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_summary_cannot_be_used_as_a_name(
        self, test_client, admin_headers, sequence_payload
    ):
        response = await test_client.post(
            "/waypoints", json=dict(sequence_payload, waypoint_name="Summary"), headers=admin_headers
        )
        assert response.status_code == 400
        assert response.json()["details"]["violations"][0]["rule"] == "reserved_name"

        summary = await test_client.get("/waypoints/summary", headers=admin_headers)
        assert summary.json() == {"waypoint_sequences_summary": []}

    @pytest.mark.asyncio
    async def test_accumulated_violations(self, test_client, admin_headers):
        response = await test_client.post(
            "/waypoints",
            json={"waypoint_name": "", "waypoint_description": "", "data": []},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert len(response.json()["details"]["violations"]) == 3


class TestAmbient:
    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")
        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/users", headers={"X-Request-ID": "trace-123"})

        assert response.headers["X-Request-ID"] == "trace-123"
        assert response.json()["request_id"] == "trace-123"

    @pytest.mark.asyncio
    async def test_unknown_route_uses_error_envelope(self, test_client):
        response = await test_client.get("/nowhere")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestChallengeRoutes:
    @pytest.mark.asyncio
    async def test_player_forbidden(self, test_client, player_headers):
        response = await test_client.get("/challenges", headers=player_headers)
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_challenge_lifecycle(
        self, test_client, admin_headers, player_token, challenge_payload
    ):
        created = await test_client.post(
            "/challenges",
            json=dict(challenge_payload, invited_users=["player@test.com"]),
            headers=admin_headers,
        )
        assert created.status_code == 201
        assert created.json()["invited_count"] == 1
        challenge_id = created.json()["challenge_id"]

        listed = await test_client.get("/challenges", headers=admin_headers)
        assert [c["challenge_id"] for c in listed.json()["challenges"]] == [challenge_id]

        participants = await test_client.get(
            f"/challenges/{challenge_id}/participants", headers=admin_headers
        )
        assert participants.status_code == 200
        participant = participants.json()["participants"][0]
        assert participant["state"] == "PENDING"

        by_user = await test_client.get(
            f"/challenges/{challenge_id}/participants/by-user/player@test.com",
            headers=admin_headers,
        )
        assert by_user.json()["challenge_participant_id"] == participant["challenge_participant_id"]

        accepted = await test_client.put(
            f"/challenges/{challenge_id}/participants/{participant['challenge_participant_id']}",
            json={"state": "ACCEPTED"},
            headers=admin_headers,
        )
        assert accepted.status_code == 200
        assert accepted.json()["state"] == "ACCEPTED"

        deleted = await test_client.delete(f"/challenges/{challenge_id}", headers=admin_headers)
        assert deleted.status_code == 204

        missing = await test_client.get(f"/challenges/{challenge_id}", headers=admin_headers)
        assert missing.status_code == 404

        history = await test_client.get(f"/challenges/{challenge_id}/history", headers=admin_headers)
        assert len(history.json()["history"]) == 1

    @pytest.mark.asyncio
    async def test_invite_and_name_conflict(
        self, test_client, admin_headers, player_token, challenge_payload
    ):
        created = await test_client.post("/challenges", json=challenge_payload, headers=admin_headers)
        challenge_id = created.json()["challenge_id"]

        invited = await test_client.post(
            f"/challenges/{challenge_id}/participants",
            json={"invited_users": ["player@test.com"]},
            headers=admin_headers,
        )
        assert invited.status_code == 200
        assert [p["user_name"] for p in invited.json()["participants"]] == ["player@test.com"]

        duplicate = await test_client.post("/challenges", json=challenge_payload, headers=admin_headers)
        assert duplicate.status_code == 409

    @pytest.mark.asyncio
    async def test_malformed_challenge_id_is_400(self, test_client, admin_headers):
        response = await test_client.get("/challenges/not-a-uuid", headers=admin_headers)
        assert response.status_code == 400
        assert response.json()["details"]["violations"][0]["field"] == "path.challenge_id"

    @pytest.mark.asyncio
    async def test_participant_of_other_challenge_is_404(
        self, test_client, admin_headers, player_token, challenge_payload
    ):
        mine = await test_client.post(
            "/challenges",
            json=dict(challenge_payload, invited_users=["player@test.com"]),
            headers=admin_headers,
        )
        other = await test_client.post(
            "/challenges", json=dict(challenge_payload, challenge_name="Other"), headers=admin_headers
        )
        participants = await test_client.get(
            f"/challenges/{mine.json()['challenge_id']}/participants", headers=admin_headers
        )
        participant_id = participants.json()["participants"][0]["challenge_participant_id"]

        response = await test_client.get(
            f"/challenges/{other.json()['challenge_id']}/participants/{participant_id}",
            headers=admin_headers,
        )
        assert response.status_code == 404

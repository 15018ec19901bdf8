"""Operator endpoints."""

import pytest
from fastapi import status

from fxleague.models.tournament import RegistrationStatus

API = "/api/v1/admin"


class TestAdminAccess:
    @pytest.mark.asyncio
    async def test_participant_is_forbidden(self, test_client, auth_headers):
        response = await test_client.get(f"{API}/tournaments", headers=auth_headers)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error"]["code"] == "ADMIN_REQUIRED"

    @pytest.mark.asyncio
    async def test_anonymous_is_unauthorized(self, test_client):
        response = await test_client.get(f"{API}/registrations")
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


class TestTournamentCrud:
    @pytest.mark.asyncio
    async def test_create_update_delete(self, test_client, operator_headers):
        created = await test_client.post(
            f"{API}/tournaments",
            json={
                "title": "Weekly Cup",
                "start_at": "2036-11-02T09:00:00Z",
                "end_at": "2036-11-09T09:00:00Z",
                "prize_pool": 2000,
                "winners_count": 2,
                "type": "Weekly",
            },
            headers=operator_headers,
        )
        assert created.status_code == status.HTTP_201_CREATED
        data = created.json()
        assert data["slug"] == "weekly-cup"
        assert data["status"] == "UPCOMING"
        assert [e["amount"] for e in data["prize_schedule"]["entries"]] == [1400, 600]

        updated = await test_client.patch(
            f"{API}/tournaments/{data['id']}",
            json={"prize_breakdown": [{"position": 1, "amount": 1500}, {"position": 2, "amount": 400}]},
            headers=operator_headers,
        )
        assert updated.status_code == status.HTTP_200_OK
        schedule = updated.json()["prize_schedule"]
        assert schedule["explicit"] is True
        assert schedule["warning"] is not None

        deleted = await test_client.delete(
            f"{API}/tournaments/{data['id']}", headers=operator_headers
        )
        assert deleted.status_code == status.HTTP_204_NO_CONTENT

        missing = await test_client.get(f"{API}/tournaments/{data['id']}", headers=operator_headers)
        assert missing.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_slug_conflict(self, test_client, tournament, operator_headers):
        response = await test_client.post(
            f"{API}/tournaments",
            json={"title": "Daily Sprint", "start_at": "2036-11-02T09:00:00Z"},
            headers=operator_headers,
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error"]["code"] == "SLUG_TAKEN"

    @pytest.mark.asyncio
    async def test_end_before_start(self, test_client, operator_headers):
        response = await test_client.post(
            f"{API}/tournaments",
            json={
                "title": "Backwards",
                "start_at": "2036-11-02T09:00:00Z",
                "end_at": "2036-11-01T09:00:00Z",
            },
            headers=operator_headers,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error"]["code"] == "INVALID_SCHEDULE"


class TestReviewFlow:
    @pytest.mark.asyncio
    async def test_join_submit_approve(
        self, test_client, tournament, auth_headers, operator_headers
    ):
        await test_client.post(
            f"/api/v1/tournaments/{tournament.id}/join", headers=auth_headers
        )
        await test_client.put(
            f"/api/v1/tournaments/{tournament.id}/credentials",
            json={
                "platform": "cTrader",
                "login": "881",
                "view_only_password": "ro",
                "server": "Spot-Demo",
            },
            headers=auth_headers,
        )

        queue = await test_client.get(
            f"{API}/registrations",
            params={"status": RegistrationStatus.PENDING_REVIEW.value},
            headers=operator_headers,
        )
        assert queue.status_code == status.HTTP_200_OK
        body = queue.json()
        assert body["pagination"]["totalItems"] == 1
        row = body["items"][0]
        assert row["can_decide"] is True

        credentials = await test_client.get(f"{API}/credentials", headers=operator_headers)
        assert credentials.json()["items"][0]["investor_password"] == "ro"

        decision_url = f"{API}/registrations/{row['registration_id']}/decision"
        approved = await test_client.post(
            decision_url, json={"decision": "approve"}, headers=operator_headers
        )
        assert approved.status_code == status.HTTP_200_OK
        assert approved.json()["status"] == RegistrationStatus.APPROVED.value

        again = await test_client.post(
            decision_url, json={"decision": "reject"}, headers=operator_headers
        )
        assert again.status_code == status.HTTP_409_CONFLICT
        error = again.json()["error"]
        assert error["code"] == "NOT_PENDING_REVIEW"
        assert error["details"]["status"] == RegistrationStatus.APPROVED.value

    @pytest.mark.asyncio
    async def test_unknown_decision_value(
        self, test_client, tournament, trader, make_registration, operator_headers
    ):
        registration = await make_registration(
            tournament, trader, status=RegistrationStatus.PENDING_REVIEW
        )

        response = await test_client.post(
            f"{API}/registrations/{registration.id}/decision",
            json={"decision": "maybe"},
            headers=operator_headers,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


class TestModeration:
    @pytest.mark.asyncio
    async def test_ban_blocks_join(
        self, test_client, tournament, trader, auth_headers, operator_headers
    ):
        banned = await test_client.post(
            f"{API}/users/{trader.id}/ban", json={"is_banned": True}, headers=operator_headers
        )
        assert banned.status_code == status.HTTP_200_OK
        assert banned.json()["is_banned"] is True

        join = await test_client.post(
            f"/api/v1/tournaments/{tournament.id}/join", headers=auth_headers
        )
        assert join.status_code == status.HTTP_403_FORBIDDEN

    @pytest.mark.asyncio
    async def test_results_validation(self, test_client, tournament, trader, operator_headers):
        response = await test_client.put(
            f"{API}/tournaments/{tournament.id}/results",
            json={"results": [{"rank": 9, "user_id": trader.id, "pnl": "1"}]},
            headers=operator_headers,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["error"]["code"] == "INVALID_RESULTS"

    @pytest.mark.asyncio
    async def test_results_reject_unapproved_trader(
        self, test_client, tournament, trader, make_registration, operator_headers
    ):
        await make_registration(tournament, trader)

        response = await test_client.put(
            f"{API}/tournaments/{tournament.id}/results",
            json={"results": [{"rank": 1, "user_id": trader.id, "pnl": "1"}]},
            headers=operator_headers,
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        error = response.json()["error"]
        assert error["code"] == "INVALID_RESULTS"
        assert error["details"]["userIds"] == [trader.id]

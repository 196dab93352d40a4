"""
HTTP API tests against the ASGI app with an in-memory database.
"""
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from conftest import ORGANIZER, T0, TEAM_LEAD, WINDOW
from hackjudge.config.settings import Settings
from hackjudge.main import create_app


def caller(address: str) -> dict:
    return {"X-Caller-Address": address}


@pytest_asyncio.fixture
async def api(settings, database, clock) -> AsyncGenerator[AsyncClient, None]:
    app = create_app(settings, database=database, clock=clock)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


async def create_hackathon(api: AsyncClient) -> int:
    response = await api.post("/hackathons", headers=caller(ORGANIZER), json={
        "name": "API Hack",
        "description": "Judged over HTTP",
        "start_time": T0.isoformat(),
        "end_time": (T0 + WINDOW).isoformat(),
    })
    assert response.status_code == 201
    return response.json()["result"]["hackathon_id"]


class TestHackathonEndpoints:

    @pytest.mark.asyncio
    async def test_create_and_read(self, api):
        hackathon_id = await create_hackathon(api)

        response = await api.get(f"/hackathons/{hackathon_id}")
        assert response.status_code == 200
        data = response.json()
        assert data["organizer"] == ORGANIZER
        assert data["is_active"] is True

        assert (await api.get("/hackathons/count")).json() == {"count": 1}
        assert [h["id"] for h in (await api.get("/hackathons")).json()] == [0]

    @pytest.mark.asyncio
    async def test_receipt_shape(self, api):
        response = await api.post("/hackathons", headers=caller(ORGANIZER), json={
            "name": "Receipt",
            "start_time": T0.isoformat(),
            "end_time": (T0 + WINDOW).isoformat(),
        })
        receipt = response.json()
        assert receipt["sequence"] == 1
        assert receipt["op"] == "create_hackathon"
        assert len(receipt["tx_hash"]) == 64

    @pytest.mark.asyncio
    async def test_invalid_window(self, api):
        response = await api.post("/hackathons", headers=caller(ORGANIZER), json={
            "name": "Backwards",
            "start_time": (T0 + WINDOW).isoformat(),
            "end_time": T0.isoformat(),
        })
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["code"] == "INVALID_WINDOW"
        assert body["kind"] == "shape"

    @pytest.mark.asyncio
    async def test_missing_caller_header(self, api):
        response = await api.post("/hackathons", json={
            "name": "Anonymous",
            "start_time": T0.isoformat(),
            "end_time": (T0 + WINDOW).isoformat(),
        })
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_unknown_hackathon(self, api):
        response = await api.get("/hackathons/99")
        assert response.status_code == 404
        assert response.json()["error"] == "UnknownHackathon"


class TestJudgingFlow:

    @pytest.mark.asyncio
    async def test_full_flow(self, api, cipher):
        hackathon_id = await create_hackathon(api)
        base = f"/hackathons/{hackathon_id}"

        for judge in ("0xalice", "0xbob"):
            response = await api.post(f"{base}/judges", headers=caller(ORGANIZER), json={"address": judge})
            assert response.status_code == 201

        for name in ("Wallet", "Voting"):
            response = await api.post(f"{base}/projects", headers=caller(TEAM_LEAD), json={"name": name})
            assert response.status_code == 201

        assert (await api.get(f"{base}/judges/addresses")).json() == ["0xalice", "0xbob"]

        scores = {"0xalice": [3, 8], "0xbob": [4, 9]}
        for judge, values in scores.items():
            for project_id, value in enumerate(values):
                payload, proof = cipher.encode(value)
                response = await api.post(f"{base}/scores", headers=caller(judge), json={
                    "project_id": project_id,
                    "encrypted_score": "0x" + payload.hex(),
                    "proof": proof.hex(),
                })
                assert response.status_code == 201

        assert (await api.get(f"{base}/ready")).json()["ready"] is True
        complete = await api.get(f"{base}/judges/0xalice/complete")
        assert complete.json()["complete"] is True

        for project_id in (0, 1):
            response = await api.post(f"{base}/aggregates", headers=caller(ORGANIZER), json={"project_id": project_id})
            assert response.status_code == 200

        aggregate = (await api.get(f"{base}/projects/1/aggregate")).json()
        assert cipher.decode(bytes.fromhex(aggregate["payload"])) == 17

        response = await api.post(f"{base}/rankings", headers=caller(ORGANIZER), json={"project_ids": [1, 0]})
        assert response.status_code == 200
        assert (await api.get(f"{base}/rankings")).json() == [1, 0]
        assert (await api.get(f"{base}/projects/1")).json()["public_rank"] == 1
        assert (await api.get(f"{base}/lifecycle")).json()["phase"] == "published"
        assert (await api.get(f"{base}/standings/verify")).json()["is_valid"] is True

        chain = (await api.get("/ledger/verify")).json()
        assert chain["is_valid"] is True
        assert chain["total_entries"] == 12

    @pytest.mark.asyncio
    async def test_non_organizer_forbidden(self, api):
        hackathon_id = await create_hackathon(api)
        response = await api.post(
            f"/hackathons/{hackathon_id}/judges", headers=caller("0xstranger"), json={"address": "0xalice"}
        )
        assert response.status_code == 403
        body = response.json()
        assert body["code"] == "NOT_ORGANIZER"
        assert body["kind"] == "authorization"

    @pytest.mark.asyncio
    async def test_duplicate_score_conflict(self, api, cipher):
        hackathon_id = await create_hackathon(api)
        base = f"/hackathons/{hackathon_id}"
        await api.post(f"{base}/judges", headers=caller(ORGANIZER), json={"address": "0xalice"})
        await api.post(f"{base}/projects", headers=caller(TEAM_LEAD), json={"name": "Only"})

        payload, proof = cipher.encode(5)
        body = {"project_id": 0, "encrypted_score": payload.hex(), "proof": proof.hex()}
        assert (await api.post(f"{base}/scores", headers=caller("0xalice"), json=body)).status_code == 201

        response = await api.post(f"{base}/scores", headers=caller("0xalice"), json=body)
        assert response.status_code == 409
        assert response.json()["kind"] == "uniqueness"

    @pytest.mark.asyncio
    async def test_bad_hex_rejected(self, api):
        hackathon_id = await create_hackathon(api)
        response = await api.post(f"/hackathons/{hackathon_id}/scores", headers=caller("0xalice"), json={
            "project_id": 0, "encrypted_score": "not-hex", "proof": "00",
        })
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_empty_rankings_rejected(self, api):
        hackathon_id = await create_hackathon(api)
        response = await api.post(
            f"/hackathons/{hackathon_id}/rankings", headers=caller(ORGANIZER), json={"project_ids": []}
        )
        assert response.status_code == 422


class TestAppSurface:

    @pytest.mark.asyncio
    async def test_health_and_errors(self, api):
        assert (await api.get("/health")).json()["status"] == "healthy"
        summary = (await api.get("/errors")).json()
        assert "NOT_ORGANIZER" in summary["error_codes"]

    @pytest.mark.asyncio
    async def test_chain_verify_feature_flag(self, database, clock):
        settings = Settings(database_url=database.settings.database_url, feature_ledger_chain_verify=False)
        app = create_app(settings, database=database, clock=clock)
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/ledger/verify")
        assert response.status_code == 403

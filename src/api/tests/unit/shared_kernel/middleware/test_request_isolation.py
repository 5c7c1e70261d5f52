"""Request context isolation across consecutive and concurrent requests.

A clinic resolved for one request must never leak into the tenant, the
logger or the response of another request.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest
from structlog.testing import capture_logs


def _completed(logs: list[dict]) -> list[dict]:
    return [log for log in logs if log["event"] == "http_request_completed"]


class TestConsecutiveRequests:
    def test_tenant_is_not_carried_into_the_next_request(self, client, auth_headers):
        with capture_logs() as logs:
            first = client.get(
                "/patients",
                headers=auth_headers(token_tenant="CLINICA_1", clinic="CLINICA_1"),
            )
            second = client.get("/patients", headers=auth_headers())

        assert first.status_code == 200
        assert second.status_code == 400

        completed = _completed(logs)
        assert len(completed) == 2
        assert completed[0]["tenant_id"] == "CLINICA_1"
        assert completed[1]["status_code"] == 400
        assert "tenant_id" not in completed[1]

    def test_correlation_id_is_not_reused(self, client, auth_headers):
        headers = auth_headers(token_tenant="CLINICA_1", clinic="CLINICA_1")

        first = client.get("/patients", headers={**headers, "x-request-id": "req-a"})
        second = client.get("/patients", headers=headers)

        assert first.headers["x-request-id"] == "req-a"
        assert second.headers["x-request-id"] != "req-a"


class TestConcurrentRequests:
    @pytest.mark.asyncio
    async def test_interleaved_clinics_see_only_their_patients(self, app, auth_headers):
        clinic_1 = auth_headers(token_tenant="CLINICA_1", clinic="CLINICA_1")
        clinic_2 = auth_headers(
            token_tenant="CLINICA_2", clinic="CLINICA_2", subject="u2"
        )
        transport = httpx.ASGITransport(app=app)

        async with httpx.AsyncClient(
            transport=transport, base_url="http://clinic.test"
        ) as client:
            for headers, name in [
                (clinic_1, "Ana"),
                (clinic_1, "Bruno"),
                (clinic_2, "Carla"),
            ]:
                created = await client.post(
                    "/patients", headers=headers, json={"name": name}
                )
                assert created.status_code == 201, created.text

            responses = await asyncio.gather(
                *[
                    client.get(
                        "/patients",
                        headers={**headers, "x-request-id": f"{tenant}-{i}"},
                    )
                    for i in range(5)
                    for tenant, headers in [
                        ("CLINICA_1", clinic_1),
                        ("CLINICA_2", clinic_2),
                    ]
                ]
            )

        for response in responses:
            assert response.status_code == 200
            request_id = response.headers["x-request-id"]
            tenant = request_id.rsplit("-", 1)[0]
            body = response.json()
            assert {patient["tenant_id"] for patient in body["patients"]} == {tenant}
            expected = ["Ana", "Bruno"] if tenant == "CLINICA_1" else ["Carla"]
            assert sorted(patient["name"] for patient in body["patients"]) == expected

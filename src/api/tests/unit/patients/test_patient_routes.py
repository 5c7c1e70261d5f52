"""Unit tests for the patient routes.

Covers tenant isolation end to end on the in-memory application: one
clinic's patients are never listed, read, changed or deleted through
another clinic's requests.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from infrastructure.database.dependencies import get_persistence_gateway
from shared_kernel.persistence import PersistenceGateway


def _create(client: TestClient, headers: dict, name: str, **fields) -> dict:
    response = client.post("/patients", headers=headers, json={"name": name, **fields})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def clinic_1(auth_headers) -> dict[str, str]:
    return auth_headers(token_tenant="CLINICA_1", clinic="CLINICA_1")


@pytest.fixture
def clinic_2(auth_headers) -> dict[str, str]:
    return auth_headers(token_tenant="CLINICA_2", clinic="CLINICA_2", subject="u2")


class TestListIsolation:
    def test_each_clinic_lists_only_its_patients(self, client, clinic_1, clinic_2):
        _create(client, clinic_1, "Ana")
        _create(client, clinic_1, "Bruno")
        _create(client, clinic_2, "Carla")

        first = client.get("/patients", headers=clinic_1).json()
        second = client.get("/patients", headers=clinic_2).json()

        assert first["count"] == 2
        assert sorted(patient["name"] for patient in first["patients"]) == ["Ana", "Bruno"]
        assert all(patient["tenant_id"] == "CLINICA_1" for patient in first["patients"])
        assert second["count"] == 1
        assert second["patients"][0]["name"] == "Carla"

    def test_name_filter_stays_within_clinic(self, client, clinic_1, clinic_2):
        _create(client, clinic_1, "Ana")
        _create(client, clinic_2, "Ana")

        response = client.get("/patients", params={"name": "Ana"}, headers=clinic_1)

        body = response.json()
        assert body["count"] == 1
        assert body["patients"][0]["tenant_id"] == "CLINICA_1"

    def test_clinic_falls_back_to_credential(self, client, auth_headers, clinic_1):
        """Without the header the clinic embedded in the credential is used."""
        _create(client, clinic_1, "Ana")

        response = client.get("/patients", headers=auth_headers(token_tenant="CLINICA_1"))

        assert response.status_code == 200
        assert response.json()["count"] == 1


class TestMissingTenant:
    """Requests that cannot be bound to a clinic are rejected before storage."""

    @pytest.fixture
    def gateway_factory(self, app) -> MagicMock:
        gateway = MagicMock(spec=PersistenceGateway)
        gateway.find = AsyncMock(return_value=[])
        factory = MagicMock(return_value=gateway)

        def _override() -> PersistenceGateway:
            return factory()

        app.dependency_overrides[get_persistence_gateway] = _override
        yield factory
        app.dependency_overrides.clear()

    @pytest.mark.parametrize("clinic", [None, "", "   "])
    def test_returns_400_without_touching_storage(
        self, client, auth_headers, gateway_factory, clinic
    ):
        headers = auth_headers()
        if clinic is not None:
            headers["x-clinic-id"] = clinic

        response = client.get("/patients", headers=headers)

        assert response.status_code == 400
        assert "x-clinic-id" in response.json()["detail"]
        gateway_factory.assert_not_called()
        gateway_factory.return_value.find.assert_not_called()

    def test_missing_credential_returns_401(self, client, gateway_factory):
        response = client.get("/patients", headers={"x-clinic-id": "CLINICA_1"})

        assert response.status_code == 401
        gateway_factory.assert_not_called()

    def test_foreign_clinic_header_returns_403(self, client, auth_headers, gateway_factory):
        response = client.get(
            "/patients", headers=auth_headers(token_tenant="CLINICA_1", clinic="CLINICA_2")
        )

        assert response.status_code == 403
        gateway_factory.assert_not_called()


class TestSinglePatientIsolation:
    def test_get_own_patient(self, client, clinic_1):
        created = _create(client, clinic_1, "Ana", phone="+34 600 000 000")

        response = client.get(f"/patients/{created['id']}", headers=clinic_1)

        assert response.status_code == 200
        assert response.json()["phone"] == "+34 600 000 000"

    def test_other_clinic_patient_is_not_found(self, client, clinic_1, clinic_2):
        created = _create(client, clinic_1, "Ana")

        response = client.get(f"/patients/{created['id']}", headers=clinic_2)

        assert response.status_code == 404

    def test_other_clinic_cannot_update(self, client, clinic_1, clinic_2):
        created = _create(client, clinic_1, "Ana")

        response = client.patch(
            f"/patients/{created['id']}", headers=clinic_2, json={"name": "Mallory"}
        )

        assert response.status_code == 404
        unchanged = client.get(f"/patients/{created['id']}", headers=clinic_1).json()
        assert unchanged["name"] == "Ana"

    def test_update_changes_only_sent_fields(self, client, clinic_1):
        created = _create(client, clinic_1, "Ana", phone="111", email="ana@mail.test")

        response = client.patch(
            f"/patients/{created['id']}", headers=clinic_1, json={"phone": "222"}
        )

        body = response.json()
        assert response.status_code == 200
        assert body["phone"] == "222"
        assert body["email"] == "ana@mail.test"
        assert body["tenant_id"] == "CLINICA_1"

    def test_update_rejects_blank_name(self, client, clinic_1):
        created = _create(client, clinic_1, "Ana")

        response = client.patch(
            f"/patients/{created['id']}", headers=clinic_1, json={"name": None}
        )

        assert response.status_code == 400

    def test_create_rejects_blank_name(self, client, clinic_1):
        response = client.post("/patients", headers=clinic_1, json={"name": "   "})

        assert response.status_code == 400


class TestDelete:
    def test_requires_admin_role(self, client, clinic_1):
        created = _create(client, clinic_1, "Ana")

        response = client.delete(f"/patients/{created['id']}", headers=clinic_1)

        assert response.status_code == 403

    def test_admin_deletes_own_patient(self, client, auth_headers, clinic_1):
        created = _create(client, clinic_1, "Ana")
        admin = auth_headers(token_tenant="CLINICA_1", clinic="CLINICA_1", roles=("admin",))

        response = client.delete(f"/patients/{created['id']}", headers=admin)

        assert response.status_code == 204
        assert client.get(f"/patients/{created['id']}", headers=clinic_1).status_code == 404

    def test_admin_of_other_clinic_gets_404(self, client, auth_headers, clinic_1):
        created = _create(client, clinic_1, "Ana")
        admin = auth_headers(token_tenant="CLINICA_2", clinic="CLINICA_2", roles=("admin",))

        response = client.delete(f"/patients/{created['id']}", headers=admin)

        assert response.status_code == 404
        assert client.get(f"/patients/{created['id']}", headers=clinic_1).status_code == 200


class TestInputSanitization:
    def test_create_strips_markup(self, client, clinic_1):
        created = _create(
            client,
            clinic_1,
            "<script>x</script>Ana   Souza",
            phone=" 111 ",
            email='ana@mail.test<img onerror="y">',
        )

        assert created["name"] == "xAna Souza"
        assert created["phone"] == "111"
        assert created["email"] == "ana@mail.test"

    def test_update_strips_markup(self, client, clinic_1):
        created = _create(client, clinic_1, "Ana")

        response = client.patch(
            f"/patients/{created['id']}",
            headers=clinic_1,
            json={"name": "<b>Ana</b> javascript:Maria"},
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Ana Maria"

    def test_markup_only_name_is_rejected_as_blank(self, client, clinic_1):
        response = client.post(
            "/patients", headers=clinic_1, json={"name": "<b></b>"}
        )

        assert response.status_code == 400

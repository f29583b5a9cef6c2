import httpx
import pytest

from app import database as db
from app.database import AuthAdminClient
from app.exceptions import (
    NotFoundError, PermissionDeniedError, StoreError, ValidationError, ErrorCodes
)
from app.services import StaffService

from conftest import FakeAuthAdminClient


@pytest.fixture
def profiles(monkeypatch):
    saved = {}

    def upsert_profile(profile):
        saved[profile["id"]] = dict(profile)
        return saved[profile["id"]]

    def update_profile(user_id, updates):
        if user_id not in saved:
            return None
        saved[user_id].update(updates)
        return saved[user_id]

    def delete_profile(user_id):
        return saved.pop(user_id, None) is not None

    monkeypatch.setattr(db, "upsert_profile", upsert_profile)
    monkeypatch.setattr(db, "update_profile", update_profile)
    monkeypatch.setattr(db, "delete_profile", delete_profile)
    monkeypatch.setattr(db, "get_profile", lambda user_id: saved.get(user_id))
    return saved


def test_temp_password_shape():
    password = StaffService.generate_temp_password()
    assert len(password) == 11
    assert password.endswith("A1!")
    assert password[:8].isalnum() and password[:8] == password[:8].lower()


def test_create_staff_creates_auth_user_and_profile(profiles, auth_client):
    service = StaffService(auth_client)
    profile, password = service.create_staff(
        {"nombre": " Ana ", "email": "Ana@Empresa.com", "rol": "Almacenero", "salario_base": "1200"},
        "c-1",
    )

    assert auth_client.calls[0] == ("find", "ana@empresa.com")
    assert auth_client.calls[1] == ("create", "ana@empresa.com", password)
    assert profile["id"] == "user-1"
    assert profile["nombre"] == "Ana"
    assert profile["company_id"] == "c-1"
    assert profile["salario_base"] == 1200.0


def test_create_staff_with_existing_email_resets_password(profiles):
    auth_client = FakeAuthAdminClient(existing=[{"id": "user-9", "email": "ana@empresa.com"}])
    profile, password = StaffService(auth_client).create_staff(
        {"nombre": "Ana", "email": "ana@empresa.com", "rol": "Almacenero"}, "c-1"
    )

    assert ("update_password", "user-9", password) in auth_client.calls
    assert not any(call[0] == "create" for call in auth_client.calls)
    assert profile["id"] == "user-9"


@pytest.mark.parametrize("data", [
    {"nombre": "Ana", "email": "sin-arroba", "rol": "Almacenero"},
    {"nombre": "", "email": "ana@empresa.com", "rol": "Almacenero"},
    {"nombre": "Ana", "email": "ana@empresa.com", "rol": ""},
    {"nombre": "Ana", "email": "ana@empresa.com", "rol": "X", "salario_base": -5},
])
def test_create_staff_validation(profiles, auth_client, data):
    with pytest.raises(ValidationError):
        StaffService(auth_client).create_staff(data, "c-1")
    assert auth_client.calls == []


def test_update_and_delete_are_scoped_to_company(profiles, auth_client):
    profiles["u-2"] = {"id": "u-2", "nombre": "Luis", "rol": "Almacenero", "company_id": "c-2"}
    service = StaffService(auth_client)

    with pytest.raises(NotFoundError):
        service.update_staff("u-2", {"nombre": "Otro"}, "c-1")
    with pytest.raises(NotFoundError):
        service.delete_staff("u-2", "c-1")

    updated = service.update_staff("u-2", {"posicion": " Jefe ", "email": "x@y.z"}, "c-2")
    assert updated["posicion"] == "Jefe"
    assert "email" not in updated

    service.delete_staff("u-2", "c-2")
    assert "u-2" not in profiles
    assert auth_client.calls == [("delete", "u-2")]


def test_director_role_check():
    assert StaffService.is_director("Director General")
    assert not StaffService.is_director("Almacenero")


def test_auth_admin_client_creates_confirmed_user():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"id": "new-user", "email": "a@b.c"})

    client = AuthAdminClient("https://proj.example", "service-key", transport=httpx.MockTransport(handler))
    user = client.create_user("a@b.c", "secretA1!")

    assert user["id"] == "new-user"
    sent = requests[0]
    assert sent.url.path == "/auth/v1/admin/users"
    assert sent.headers["apikey"] == "service-key"
    assert b'"email_confirm":true' in sent.content.replace(b" ", b"")


def test_auth_admin_client_maps_http_errors():
    transport = httpx.MockTransport(lambda request: httpx.Response(422, text="email exists"))
    client = AuthAdminClient("https://proj.example", "service-key", transport=transport)

    with pytest.raises(StoreError) as exc:
        client.create_user("a@b.c", "x")
    assert exc.value.code == ErrorCodes.STAFF_AUTH_ERROR


def test_auth_admin_client_requires_configuration(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
    client = AuthAdminClient(base_url="", service_key="")

    with pytest.raises(StoreError) as exc:
        client.find_user_by_email("a@b.c")
    assert exc.value.code == ErrorCodes.STORE_UNAVAILABLE


def test_create_staff_rejects_email_of_another_company(profiles):
    profiles["user-9"] = {"id": "user-9", "nombre": "Luis", "rol": "Almacenero", "company_id": "c-2"}
    auth_client = FakeAuthAdminClient(existing=[{"id": "user-9", "email": "luis@otra.com"}])

    with pytest.raises(PermissionDeniedError):
        StaffService(auth_client).create_staff(
            {"nombre": "Luis", "email": "luis@otra.com", "rol": "Director General"}, "c-1"
        )

    assert not any(call[0] == "update_password" for call in auth_client.calls)
    assert profiles["user-9"]["company_id"] == "c-2"
    assert profiles["user-9"]["rol"] == "Almacenero"


def test_create_staff_reuses_account_of_same_company(profiles):
    profiles["user-9"] = {"id": "user-9", "nombre": "Ana", "rol": "Almacenero", "company_id": "c-1"}
    auth_client = FakeAuthAdminClient(existing=[{"id": "user-9", "email": "ana@empresa.com"}])

    profile, password = StaffService(auth_client).create_staff(
        {"nombre": "Ana María", "email": "ana@empresa.com", "rol": "Almacenero"}, "c-1"
    )

    assert ("update_password", "user-9", password) in auth_client.calls
    assert profile["nombre"] == "Ana María"


class FailingDeleteAuthClient(FakeAuthAdminClient):
    def delete_user(self, user_id):
        super().delete_user(user_id)
        raise StoreError("Error en la API de autenticación (500)", ErrorCodes.STAFF_AUTH_ERROR)


def test_delete_staff_keeps_profile_when_auth_delete_fails(profiles):
    profiles["u-3"] = {"id": "u-3", "nombre": "Eva", "rol": "Almacenero", "company_id": "c-1"}
    auth_client = FailingDeleteAuthClient()

    with pytest.raises(StoreError):
        StaffService(auth_client).delete_staff("u-3", "c-1")

    assert auth_client.calls == [("delete", "u-3")]
    assert "u-3" in profiles

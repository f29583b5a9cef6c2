import os
from datetime import datetime

import pytest

os.environ.setdefault("DATABASE_URL", "")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-secret")

from app.exceptions import DuplicateError, ErrorCodes  # noqa: E402
from app.security import TokenData  # noqa: E402


class InMemoryProductStore:
    """Almacén de productos en memoria con la misma restricción de ID único que la tabla."""

    def __init__(self, products=None, owners=None):
        self.products = {p["id"]: dict(p) for p in (products or [])}
        # user_id -> company_id, como el JOIN con profiles
        self.owners = owners or {"u-director": "c-1", "u-staff": "c-1", "u-other": "c-2"}
        self.insert_calls = 0

    def _in_company(self, product, company_id):
        return self.owners.get(product.get("user_id")) == company_id

    def fetch_existing_ids(self, candidate_ids):
        return {pid for pid in candidate_ids if pid in self.products}

    def bulk_insert(self, records):
        self.insert_calls += 1
        rows = [r.model_dump() if hasattr(r, "model_dump") else dict(r) for r in records]
        for row in rows:
            if row["id"] in self.products:
                raise DuplicateError(
                    f"El ID '{row['id']}' ya existe.", ErrorCodes.PRODUCT_ID_DUPLICATE
                )
        now = datetime(2024, 5, 10, 12, 0)
        for row in rows:
            row.setdefault("created_at", now)
            row.setdefault("updated_at", now)
            self.products[row["id"]] = row

    def fetch_products(self, company_id):
        return [p for p in self.products.values() if self._in_company(p, company_id)]

    def get_product(self, product_id, company_id):
        product = self.products.get(product_id)
        return dict(product) if product and self._in_company(product, company_id) else None

    def create_product(self, data):
        self.bulk_insert([data])
        return data["id"]

    def update_product(self, product_id, company_id, updates):
        if self.get_product(product_id, company_id) is None:
            return False
        self.products[product_id].update(updates)
        return True

    def delete_product(self, product_id, company_id):
        if self.get_product(product_id, company_id) is None:
            return False
        del self.products[product_id]
        return True


class FakeAuthAdminClient:
    """Registra las llamadas a la API de administración de usuarios."""

    def __init__(self, existing=None):
        self.users = {u["email"]: dict(u) for u in (existing or [])}
        self.calls = []

    def find_user_by_email(self, email):
        self.calls.append(("find", email))
        return self.users.get(email)

    def create_user(self, email, password):
        self.calls.append(("create", email, password))
        user = {"id": f"user-{len(self.users) + 1}", "email": email}
        self.users[email] = user
        return user

    def update_password(self, user_id, password):
        self.calls.append(("update_password", user_id, password))
        return {"id": user_id}

    def delete_user(self, user_id):
        self.calls.append(("delete", user_id))


@pytest.fixture
def import_time():
    return datetime(2024, 5, 10, 12, 0)


@pytest.fixture
def store():
    return InMemoryProductStore()


@pytest.fixture
def auth_client():
    return FakeAuthAdminClient()


@pytest.fixture
def director():
    return TokenData(
        user_id="u-director", email="dir@protrack.test", nombre="Dirección",
        rol="Director General", company_id="c-1",
    )


@pytest.fixture
def staff_member():
    return TokenData(
        user_id="u-staff", email="staff@protrack.test", nombre="Ana",
        rol="Almacenero", company_id="c-1",
    )


@pytest.fixture
def outsider():
    return TokenData(
        user_id="u-other", email="dir@otra.test", nombre="Otra Dirección",
        rol="Director General", company_id="c-2",
    )

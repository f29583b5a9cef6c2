# app/database/repositories/auth_admin_repo.py
"""
Cliente mínimo de la API de administración de usuarios del backend gestionado.
Solo se usa para dar de alta / baja las cuentas de acceso del personal.
"""

import logging
import os
from typing import Optional

import httpx
from dotenv import load_dotenv

from app.exceptions import StoreError, ErrorCodes

logger = logging.getLogger(__name__)


class AuthAdminClient:

    def __init__(self, base_url: Optional[str] = None, service_key: Optional[str] = None,
                 timeout: float = 10.0, transport: Optional[httpx.BaseTransport] = None):
        load_dotenv()
        self.base_url = (base_url or os.environ.get("SUPABASE_URL", "")).rstrip("/")
        self.service_key = service_key or os.environ.get("SUPABASE_SERVICE_ROLE_KEY", "")
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=f"{self.base_url}/auth/v1/admin",
            headers={
                "apikey": self.service_key,
                "Authorization": f"Bearer {self.service_key}",
            },
            timeout=self.timeout,
            transport=self.transport,
        )

    def _request(self, method: str, path: str, **kwargs) -> dict:
        if not self.base_url or not self.service_key:
            raise StoreError(
                "SUPABASE_URL o SUPABASE_SERVICE_ROLE_KEY no están configuradas.",
                ErrorCodes.STORE_UNAVAILABLE
            )
        try:
            with self._client() as client:
                response = client.request(method, path, **kwargs)
                response.raise_for_status()
                return response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            detail = e.response.text
            logger.error("[AUTH-ADMIN] %s %s -> %s %s", method, path, e.response.status_code, detail)
            raise StoreError(
                f"Error de autenticación: {detail}",
                ErrorCodes.STAFF_AUTH_ERROR,
                {"status": e.response.status_code}
            )
        except httpx.HTTPError as e:
            logger.error("[AUTH-ADMIN] %s %s falló: %s", method, path, e)
            raise StoreError(f"Servicio de autenticación no disponible: {e}", ErrorCodes.STORE_UNAVAILABLE)

    def find_user_by_email(self, email: str) -> Optional[dict]:
        data = self._request("GET", "/users", params={"page": 1, "per_page": 1000})
        wanted = email.strip().lower()
        for user in data.get("users", []):
            if (user.get("email") or "").lower() == wanted:
                return user
        return None

    def create_user(self, email: str, password: str) -> dict:
        return self._request("POST", "/users", json={
            "email": email,
            "password": password,
            "email_confirm": True,
        })

    def update_password(self, user_id: str, password: str) -> dict:
        return self._request("PUT", f"/users/{user_id}", json={"password": password})

    def delete_user(self, user_id: str) -> None:
        self._request("DELETE", f"/users/{user_id}")

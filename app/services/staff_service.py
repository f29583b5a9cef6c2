# app/services/staff_service.py
"""
Service Layer para Gestión de Personal.
El alta crea (o reutiliza) la cuenta de acceso y luego el perfil en la empresa del Director.
"""

import logging
import secrets
import string
from typing import Optional, Dict, Any, Tuple

from app import database as db
from app.exceptions import (
    ValidationError,
    NotFoundError,
    PermissionDeniedError,
    ErrorCodes
)

logger = logging.getLogger(__name__)


class StaffService:
    """
    Servicio de lógica de negocio para el personal de una empresa.
    Solo el Director General administra personal.
    """

    DIRECTOR_ROLE = "Director General"

    TEMP_PASSWORD_LENGTH = 8
    TEMP_PASSWORD_SUFFIX = "A1!"

    EDITABLE_FIELDS = ("nombre", "telefono", "rol", "posicion", "salario_base")

    def __init__(self, auth_client: Optional[db.AuthAdminClient] = None):
        self.auth_client = auth_client or db.AuthAdminClient()

    # ==========================================================================
    # VALIDACIÓN
    # ==========================================================================

    @staticmethod
    def is_director(rol: Optional[str]) -> bool:
        return (rol or "").strip() == StaffService.DIRECTOR_ROLE

    @staticmethod
    def ensure_director(rol: Optional[str]) -> None:
        if not StaffService.is_director(rol):
            raise PermissionDeniedError(
                "Solo el Director General puede gestionar el personal",
                ErrorCodes.PERMISSION_DENIED,
                {"rol": rol}
            )

    @staticmethod
    def validate_email(email: Optional[str]) -> str:
        cleaned = (email or "").strip().lower()
        if not cleaned or "@" not in cleaned:
            raise ValidationError(
                f"El email '{email}' no es válido",
                ErrorCodes.INVALID_EMAIL,
                {"field": "email", "provided_value": email}
            )
        return cleaned

    @staticmethod
    def validate_required(value: Optional[str], field_name: str) -> str:
        if not value or not value.strip():
            raise ValidationError(
                f"El campo {field_name} es requerido",
                ErrorCodes.MISSING_REQUIRED_FIELD,
                {"field": field_name}
            )
        return value.strip()

    @staticmethod
    def validate_salary(salario: Any) -> Optional[float]:
        if salario is None or salario == "":
            return None
        try:
            value = float(salario)
        except (ValueError, TypeError):
            raise ValidationError(
                f"El salario '{salario}' no es un número válido",
                ErrorCodes.INVALID_PRICE,
                {"field": "salario_base", "provided_value": str(salario)}
            )
        if value < 0:
            raise ValidationError(
                "El salario no puede ser negativo",
                ErrorCodes.INVALID_PRICE,
                {"field": "salario_base", "provided_value": value}
            )
        return value

    @staticmethod
    def generate_temp_password() -> str:
        """Contraseña temporal: 8 caracteres alfanuméricos + 'A1!'."""
        alphabet = string.ascii_lowercase + string.digits
        body = "".join(secrets.choice(alphabet) for _ in range(StaffService.TEMP_PASSWORD_LENGTH))
        return body + StaffService.TEMP_PASSWORD_SUFFIX

    @staticmethod
    def prepare_staff_update(updates: Dict[str, Any]) -> Dict[str, Any]:
        prepared: Dict[str, Any] = {}
        for key, value in updates.items():
            if key not in StaffService.EDITABLE_FIELDS:
                continue
            if key in ("nombre", "rol"):
                prepared[key] = StaffService.validate_required(value, key)
            elif key == "salario_base":
                prepared[key] = StaffService.validate_salary(value)
            else:
                prepared[key] = value.strip() if isinstance(value, str) else value
        return prepared

    # ==========================================================================
    # OPERACIONES
    # ==========================================================================

    def create_staff(self, data: Dict[str, Any], company_id: Optional[str]) -> Tuple[Dict, str]:
        """
        Crea la cuenta de acceso (o restablece la contraseña si el email ya existe)
        y registra el perfil en la empresa.

        Returns:
            (perfil, contraseña temporal)
        """
        email = StaffService.validate_email(data.get("email"))
        nombre = StaffService.validate_required(data.get("nombre"), "nombre")
        rol = StaffService.validate_required(data.get("rol"), "rol")
        salario = StaffService.validate_salary(data.get("salario_base"))
        temp_password = StaffService.generate_temp_password()

        existing = self.auth_client.find_user_by_email(email)
        if existing:
            user_id = existing["id"]
            current = db.get_profile(user_id)
            if current and current.get("company_id") and str(current["company_id"]) != str(company_id):
                logger.warning("[STAFF] %s ya pertenece a otra empresa", email)
                raise PermissionDeniedError(
                    "El email ya pertenece a un usuario de otra empresa",
                    ErrorCodes.PERMISSION_DENIED,
                    {"email": email}
                )
            logger.info("[STAFF] Usuario %s ya existe, se restablece la contraseña", email)
            self.auth_client.update_password(user_id, temp_password)
        else:
            user_id = self.auth_client.create_user(email, temp_password)["id"]
            logger.info("[STAFF] Usuario creado para %s", email)

        profile = db.upsert_profile({
            "id": user_id,
            "nombre": nombre,
            "email": email,
            "telefono": (data.get("telefono") or "").strip() or None,
            "rol": rol,
            "posicion": (data.get("posicion") or "").strip() or None,
            "salario_base": salario,
            "company_id": company_id,
        })
        return profile, temp_password

    def update_staff(self, user_id: str, updates: Dict[str, Any], company_id: Optional[str]) -> Dict:
        self._get_company_profile(user_id, company_id)
        updated = db.update_profile(user_id, StaffService.prepare_staff_update(updates))
        if not updated:
            raise NotFoundError("Miembro del personal no encontrado", ErrorCodes.STAFF_NOT_FOUND)
        return updated

    def delete_staff(self, user_id: str, company_id: Optional[str]) -> None:
        """
        Elimina la cuenta de acceso y después el perfil.
        Si falla la cuenta, el perfil queda intacto y se puede reintentar.
        """
        self._get_company_profile(user_id, company_id)
        self.auth_client.delete_user(user_id)
        if not db.delete_profile(user_id):
            logger.warning("[STAFF] Cuenta %s eliminada pero el perfil ya no existía", user_id)
        logger.info("[STAFF] Personal %s eliminado", user_id)

    @staticmethod
    def _get_company_profile(user_id: str, company_id: Optional[str]) -> Dict:
        profile = db.get_profile(user_id)
        if not profile or profile.get("company_id") != company_id:
            raise NotFoundError(
                "Miembro del personal no encontrado",
                ErrorCodes.STAFF_NOT_FOUND,
                {"user_id": user_id}
            )
        return profile

# app/exceptions.py
"""
Excepciones de negocio para ProTrack.
Todas las excepciones heredan de ProTrackBaseException para manejo centralizado.
"""

from typing import Dict, Any, Optional


class ProTrackBaseException(Exception):
    """Excepción base para todos los errores de negocio de ProTrack."""

    status_code = 400

    def __init__(self, message: str, code: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(ProTrackBaseException):
    """Error de validación de datos de entrada."""
    pass


class NotFoundError(ProTrackBaseException):
    """Recurso no encontrado."""
    status_code = 404


class DuplicateError(ProTrackBaseException):
    """Intento de crear un recurso duplicado."""
    status_code = 409


class BusinessRuleError(ProTrackBaseException):
    """Violación de regla de negocio."""
    pass


class PermissionDeniedError(ProTrackBaseException):
    """Usuario sin permisos suficientes."""
    status_code = 403


class StoreError(ProTrackBaseException):
    """El almacén de datos externo rechazó la operación."""
    status_code = 502


class ErrorCodes:
    """Códigos de error centralizados para toda la aplicación."""

    # Errores de Producto (PROD_xxx)
    PRODUCT_NOT_FOUND = "PROD_001"
    PRODUCT_ID_DUPLICATE = "PROD_002"
    PRODUCT_INVALID_DATE = "PROD_003"
    PRODUCT_INVALID_SORT = "PROD_004"

    # Errores de Validación (VAL_xxx)
    INVALID_PRICE = "VAL_001"
    MISSING_REQUIRED_FIELD = "VAL_004"
    INVALID_QUANTITY = "VAL_005"
    INVALID_EMAIL = "VAL_006"

    # Errores de Movimientos (MOV_xxx)
    MOVEMENT_INVALID_TYPE = "MOV_001"
    TRANSFER_SAME_SITE = "MOV_002"
    EXPORT_NO_DATA = "MOV_003"

    # Errores de Personal (STAFF_xxx)
    STAFF_NOT_FOUND = "STAFF_001"
    STAFF_AUTH_ERROR = "STAFF_002"

    # Errores de Permisos (PERM_xxx)
    PERMISSION_DENIED = "PERM_001"

    # Errores del almacén de datos (STORE_xxx)
    STORE_UNAVAILABLE = "STORE_001"
    STORE_REJECTED = "STORE_002"

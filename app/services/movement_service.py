# app/services/movement_service.py
"""
Service Layer para Movimientos de Stock y Transferencias entre sedes.
Valida los datos del formulario y calcula el efecto sobre cantidad_disponible.
"""

from typing import Optional, Dict, List, Any
from datetime import date
import csv
import io

from app.exceptions import (
    ValidationError,
    BusinessRuleError,
    ErrorCodes
)


class MovementService:
    """
    Servicio de lógica de negocio para movimientos (Entrada/Salida) y transferencias.
    """

    # ==========================================================================
    # CONSTANTES
    # ==========================================================================

    TIPO_ENTRADA = "Entrada"
    TIPO_SALIDA = "Salida"
    VALID_TYPES = {TIPO_ENTRADA, TIPO_SALIDA}

    MOVEMENT_CSV_HEADERS = [
        'id', 'product_id', 'producto', 'tipo_movimiento', 'unidades',
        'fecha_movimiento', 'precio_venta', 'ganancia'
    ]

    TRANSFER_CSV_HEADERS = [
        'id', 'product_id', 'producto', 'sede_origen', 'destino',
        'fecha', 'motivo', 'encargado'
    ]

    # ==========================================================================
    # VALIDACIÓN
    # ==========================================================================

    @staticmethod
    def validate_type(tipo: Optional[str]) -> str:
        """
        Valida el tipo de movimiento. Acepta mayúsculas/minúsculas indistintas.

        Raises:
            ValidationError: Si no es 'Entrada' ni 'Salida'
        """
        normalized = (tipo or "").strip().capitalize()
        if normalized not in MovementService.VALID_TYPES:
            raise ValidationError(
                f"Tipo de movimiento inválido: '{tipo}'",
                ErrorCodes.MOVEMENT_INVALID_TYPE,
                {"provided_value": tipo, "allowed_values": sorted(MovementService.VALID_TYPES)}
            )
        return normalized

    @staticmethod
    def validate_units(unidades: Any) -> int:
        """
        Raises:
            ValidationError: Si las unidades no son un entero mayor a cero
        """
        try:
            units = int(unidades)
        except (ValueError, TypeError):
            raise ValidationError(
                f"Las unidades '{unidades}' no son un número válido",
                ErrorCodes.INVALID_QUANTITY,
                {"field": "unidades", "provided_value": str(unidades)}
            )
        if units <= 0:
            raise ValidationError(
                "Las unidades deben ser mayores a cero",
                ErrorCodes.INVALID_QUANTITY,
                {"field": "unidades", "provided_value": units}
            )
        return units

    # ==========================================================================
    # EFECTO SOBRE EL STOCK
    # ==========================================================================

    @staticmethod
    def stock_delta(tipo: str, unidades: int) -> int:
        """Variación de stock: positiva para Entrada, negativa para Salida."""
        return unidades if tipo == MovementService.TIPO_ENTRADA else -unidades

    @staticmethod
    def apply_movement(current_stock: int, tipo: str, unidades: int) -> int:
        """Stock resultante; una salida nunca deja el stock por debajo de cero."""
        return max(0, (current_stock or 0) + MovementService.stock_delta(tipo, unidades))

    # ==========================================================================
    # PREPARACIÓN DE DATOS
    # ==========================================================================

    @staticmethod
    def prepare_movement(data: Dict[str, Any], user_id: Optional[str]) -> Dict[str, Any]:
        tipo = MovementService.validate_type(data.get("tipo_movimiento"))
        return {
            "product_id": MovementService._require(data.get("product_id"), "product_id"),
            "tipo_movimiento": tipo,
            "unidades": MovementService.validate_units(data.get("unidades")),
            "fecha_movimiento": data.get("fecha_movimiento") or date.today(),
            "precio_venta": data.get("precio_venta"),
            "ganancia": data.get("ganancia"),
            "user_id": user_id,
        }

    @staticmethod
    def prepare_transfer(data: Dict[str, Any], user_id: Optional[str]) -> Dict[str, Any]:
        """
        Raises:
            ValidationError: Si falta producto, origen o destino
            BusinessRuleError: Si origen y destino son la misma sede
        """
        origen = MovementService._require(data.get("sede_origen"), "sede_origen")
        destino = MovementService._require(data.get("destino"), "destino")
        if origen.lower() == destino.lower():
            raise BusinessRuleError(
                "La sede de origen y el destino no pueden ser iguales",
                ErrorCodes.TRANSFER_SAME_SITE,
                {"sede_origen": origen, "destino": destino}
            )
        return {
            "product_id": MovementService._require(data.get("product_id"), "product_id"),
            "sede_origen": origen,
            "destino": destino,
            "fecha": data.get("fecha") or date.today(),
            "motivo": (data.get("motivo") or "").strip(),
            "encargado": (data.get("encargado") or "").strip(),
            "user_id": user_id,
        }

    @staticmethod
    def _require(value: Optional[str], field_name: str) -> str:
        if not value or not str(value).strip():
            raise ValidationError(
                f"El campo {field_name} es requerido",
                ErrorCodes.MISSING_REQUIRED_FIELD,
                {"field": field_name}
            )
        return str(value).strip()

    # ==========================================================================
    # EXPORTACIÓN
    # ==========================================================================

    @staticmethod
    def generate_csv_content(rows: List[Dict], headers: List[str]) -> str:
        """
        Raises:
            ValidationError: Si no hay datos para exportar
        """
        if not rows:
            raise ValidationError("No hay datos para exportar", ErrorCodes.EXPORT_NO_DATA)

        output = io.StringIO(newline='')
        writer = csv.writer(output)
        writer.writerow(headers)
        for row in rows:
            writer.writerow(["" if row.get(h) is None else row.get(h) for h in headers])
        return output.getvalue()

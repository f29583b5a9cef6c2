# app/services/product_service.py
"""
Servicio de productos - Capa de lógica de negocio.
Maneja validaciones, transformaciones y orquestación.
El repositorio solo debe ejecutar SQL puro.
"""

from typing import Dict, Any, Optional, List
import csv
import io
from app.exceptions import ValidationError, ErrorCodes
from app.services.date_normalizer import normalize_date
from app.services.product_import import TEMPLATE_HEADERS, default_expiration


class ProductService:
    """
    Servicio para lógica de negocio relacionada con productos.
    Centraliza validaciones y reglas de negocio del alta/edición manual.
    """

    INTEGER_FIELDS = ("numero_lotes", "tamano_lote", "unidades", "cantidad_disponible",
                      "umbral_minimo", "umbral_maximo")
    DECIMAL_FIELDS = ("precio_compra", "total_compra")
    TEXT_FIELDS = ("ubicacion", "proveedores", "entrada")

    # Las exportaciones usan el mismo orden que la plantilla de importación
    EXPORT_CSV_HEADERS = TEMPLATE_HEADERS

    # === Métodos de Normalización ===

    @staticmethod
    def normalize_id(product_id: Optional[str]) -> str:
        """
        Normaliza el ID del producto (sin espacios alrededor).

        Raises:
            ValidationError: Si el ID es vacío o None
        """
        if not product_id or not product_id.strip():
            raise ValidationError(
                "El ID del producto es requerido",
                ErrorCodes.MISSING_REQUIRED_FIELD,
                {"field": "id"}
            )
        return product_id.strip()

    @staticmethod
    def normalize_name(name: Optional[str]) -> str:
        """
        Normaliza nombre de producto quitando espacios extra.

        Raises:
            ValidationError: Si nombre es vacío o None
        """
        if not name or not name.strip():
            raise ValidationError(
                "El nombre es requerido",
                ErrorCodes.MISSING_REQUIRED_FIELD,
                {"field": "nombre"}
            )
        return " ".join(name.split())

    # === Métodos de Validación ===

    @staticmethod
    def validate_price(price: Any, field_name: str = "precio_compra") -> float:
        """
        Valida que el precio sea un número no negativo.

        Args:
            price: Precio a validar (puede ser string, int o float)
            field_name: Nombre del campo para mensajes de error

        Returns:
            Precio como float validado

        Raises:
            ValidationError: Si precio es negativo o no es numérico
        """
        try:
            if isinstance(price, str):
                price = price.replace(',', '.')
            price_float = float(price) if price else 0.0
        except (ValueError, TypeError):
            raise ValidationError(
                f"El precio '{price}' no es un número válido",
                ErrorCodes.INVALID_PRICE,
                {"field": field_name, "provided_value": str(price)}
            )

        if price_float < 0:
            raise ValidationError(
                "El precio no puede ser negativo",
                ErrorCodes.INVALID_PRICE,
                {"field": field_name, "provided_value": price_float}
            )
        return price_float

    @staticmethod
    def validate_count(value: Any, field_name: str) -> int:
        """
        Valida un conteo entero no negativo (lotes, unidades, umbrales, stock).

        Raises:
            ValidationError: Si no es entero o es negativo
        """
        if value is None or value == "":
            return 0
        try:
            count = int(value)
        except (ValueError, TypeError):
            raise ValidationError(
                f"El valor '{value}' de {field_name} no es un entero válido",
                ErrorCodes.INVALID_QUANTITY,
                {"field": field_name, "provided_value": str(value)}
            )
        if count < 0:
            raise ValidationError(
                f"{field_name} no puede ser negativo",
                ErrorCodes.INVALID_QUANTITY,
                {"field": field_name, "provided_value": count}
            )
        return count

    @staticmethod
    def validate_expiration(raw: Optional[str], required: bool = False) -> Optional[str]:
        """
        Normaliza la fecha de expiración a 'YYYY-MM-DD'.

        Returns:
            Fecha ISO, o None si viene vacía y no es obligatoria

        Raises:
            ValidationError: Si la fecha no existe en el calendario
        """
        parsed = normalize_date(raw)
        if parsed.is_blank:
            if required:
                raise ValidationError(
                    "La fecha de expiración es requerida",
                    ErrorCodes.MISSING_REQUIRED_FIELD,
                    {"field": "fecha_expiracion"}
                )
            return None
        if parsed.is_invalid:
            raise ValidationError(
                f"Fecha inválida: '{raw}'",
                ErrorCodes.PRODUCT_INVALID_DATE,
                {"field": "fecha_expiracion", "provided_value": raw}
            )
        return parsed.value

    # === Métodos de Preparación de Datos ===

    @staticmethod
    def prepare_product_data(data: Dict[str, Any], user_id: Optional[str]) -> Dict[str, Any]:
        """
        Prepara y valida un producto nuevo desde el formulario.
        Sin fecha de expiración se asigna un año desde hoy, igual que en la importación.
        """
        prepared: Dict[str, Any] = {
            "id": ProductService.normalize_id(data.get("id")),
            "nombre": ProductService.normalize_name(data.get("nombre")),
            "user_id": user_id,
            "warehouse_id": data.get("warehouse_id"),
            "imagen_url": data.get("imagen_url") or None,
            "categoria_abc": data.get("categoria_abc") or None,
        }
        for name in ProductService.TEXT_FIELDS:
            prepared[name] = (data.get(name) or "").strip()
        for name in ProductService.INTEGER_FIELDS:
            prepared[name] = ProductService.validate_count(data.get(name), name)
        for name in ProductService.DECIMAL_FIELDS:
            prepared[name] = ProductService.validate_price(data.get(name), name)

        prepared["fecha_expiracion"] = (
            ProductService.validate_expiration(data.get("fecha_expiracion")) or default_expiration()
        )
        return prepared

    @staticmethod
    def prepare_product_update(updates: Dict[str, Any]) -> Dict[str, Any]:
        """Valida solo los campos enviados en una edición parcial."""
        prepared: Dict[str, Any] = {}
        for key, value in updates.items():
            if key == "nombre":
                prepared[key] = ProductService.normalize_name(value)
            elif key in ProductService.INTEGER_FIELDS:
                prepared[key] = ProductService.validate_count(value, key)
            elif key in ProductService.DECIMAL_FIELDS:
                prepared[key] = ProductService.validate_price(value, key)
            elif key == "fecha_expiracion":
                prepared[key] = ProductService.validate_expiration(value, required=True)
            elif key in ProductService.TEXT_FIELDS:
                prepared[key] = (value or "").strip()
            elif key in ("imagen_url", "categoria_abc", "warehouse_id"):
                prepared[key] = value or None
        return prepared

    # =========================================================================
    # CSV EXPORT LOGIC
    # =========================================================================

    @staticmethod
    def export_cell(value: Any, delimiter: str = ',') -> Any:
        """Celda plana: sin delimitador, comillas ni saltos de línea."""
        if value is None:
            return ""
        if not isinstance(value, str):
            return value
        cleaned = value.replace(delimiter, " ").replace('"', "")
        return " ".join(cleaned.split())

    @staticmethod
    def generate_csv_content(products: List[Dict], delimiter: str = ',') -> str:
        """
        Genera contenido CSV a partir de lista de productos, en el orden de la plantilla.

        El importador separa por comas sin interpretar comillas, así que las celdas
        de texto se exportan sin el delimitador (ver export_cell) para poder
        reimportar el archivo. "Tomate, caja" se exporta como "Tomate caja".

        Args:
            products: Lista de diccionarios de productos
            delimiter: Delimitador CSV

        Returns:
            String con contenido CSV
        """
        output = io.StringIO(newline='')
        writer = csv.writer(output, delimiter=delimiter)

        writer.writerow(ProductService.EXPORT_CSV_HEADERS)

        for prod in products:
            prod_dict = dict(prod) if not isinstance(prod, dict) else prod
            writer.writerow([
                ProductService.export_cell(prod_dict.get(h), delimiter)
                for h in ProductService.EXPORT_CSV_HEADERS
            ])

        return output.getvalue()

# app/services/product_filter.py
"""
Motor de filtrado y ordenamiento de productos en memoria.
Función pura: no hace I/O y nunca modifica la lista recibida.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

SORT_ASC = "asc"
SORT_DESC = "desc"
VALID_SORT_FIELDS = {"precio_compra", "created_at", "updated_at", "nombre"}
TIMESTAMP_FIELDS = {"created_at", "updated_at"}

_MISSING = object()


@dataclass(frozen=True)
class FilterSpec:
    """Parámetros de búsqueda/orden elegidos por el usuario. Todo campo en None no filtra."""
    query: Optional[str] = None
    codigo_barras: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    stock_min: Optional[float] = None
    stock_max: Optional[float] = None
    sort_by: Optional[str] = None
    sort_order: str = SORT_ASC


def _get(product: Any, field: str) -> Any:
    if isinstance(product, Mapping):
        value = product.get(field, _MISSING)
    else:
        value = getattr(product, field, _MISSING)
    return _MISSING if value is None else value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _to_instant(value: Any) -> Optional[float]:
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp()


def _in_range(value: Any, minimum: Optional[float], maximum: Optional[float]) -> bool:
    if not _is_number(value):
        return False
    if minimum is not None and value < minimum:
        return False
    if maximum is not None and value > maximum:
        return False
    return True


def _sort_key(value: Any, timestamp_field: bool):
    """
    Clave homogénea para sorted(). Números antes que textos si la columna
    mezcla tipos; None si el valor no se puede ordenar (se manda al final).
    """
    if timestamp_field:
        instant = _to_instant(value)
        return None if instant is None else (0, instant, "")
    if _is_number(value):
        return (0, float(value), "")
    return (1, 0.0, str(value))


def filter_products(products: Sequence[Any], spec: Optional[FilterSpec] = None) -> List[Any]:
    """
    Aplica los filtros de FilterSpec en orden (código exacto, texto, precio,
    stock) y luego un ordenamiento estable.

    Args:
        products: Productos como dicts (filas de BD) u objetos con atributos
        spec: Filtros y orden; None equivale a sin filtros

    Returns:
        Nueva lista; la entrada no se modifica.
    """
    spec = spec or FilterSpec()
    result = list(products)

    if spec.codigo_barras and spec.codigo_barras.strip():
        code = spec.codigo_barras.strip()

        def matches_code(product: Any) -> bool:
            barcode = _get(product, "codigo_barras")
            if isinstance(barcode, str):
                return barcode == code
            return _get(product, "id") == code

        result = [p for p in result if matches_code(p)]

    if spec.query and spec.query.strip():
        needle = spec.query.strip().lower()

        def matches_name(product: Any) -> bool:
            name = _get(product, "nombre")
            return name is not _MISSING and needle in str(name).lower()

        result = [p for p in result if matches_name(p)]

    if spec.price_min is not None or spec.price_max is not None:
        result = [
            p for p in result
            if _in_range(_get(p, "precio_compra"), spec.price_min, spec.price_max)
        ]

    if spec.stock_min is not None or spec.stock_max is not None:
        result = [
            p for p in result
            if _in_range(_get(p, "cantidad_disponible"), spec.stock_min, spec.stock_max)
        ]

    if spec.sort_by:
        timestamp_field = spec.sort_by in TIMESTAMP_FIELDS
        keyed = []
        missing = []
        for product in result:
            value = _get(product, spec.sort_by)
            key = None if value is _MISSING else _sort_key(value, timestamp_field)
            if key is None:
                missing.append(product)
            else:
                keyed.append((key, product))

        # sorted() es estable también con reverse=True
        keyed.sort(key=lambda pair: pair[0], reverse=spec.sort_order == SORT_DESC)
        result = [product for _, product in keyed] + missing

    return result


def low_stock(products: Sequence[Any]) -> List[Any]:
    """Productos con cantidad disponible por debajo de su umbral mínimo."""
    alerts = []
    for product in products:
        available = _get(product, "cantidad_disponible")
        minimum = _get(product, "umbral_minimo")
        if _is_number(available) and _is_number(minimum) and available < minimum:
            alerts.append(product)
    return alerts


def build_filter_spec(**kwargs) -> FilterSpec:
    """Construye un FilterSpec descartando valores None y textos vacíos."""
    clean: Dict[str, Any] = {k: v for k, v in kwargs.items() if v is not None and v != ""}
    return FilterSpec(**clean)

# app/services/column_resolver.py
"""
Resolución de columnas CSV.
Asocia encabezados arbitrarios (con tildes, mayúsculas o espacios) a los
campos canónicos del producto mediante normalización + coincidencia parcial.
"""

from typing import Dict, List, Sequence, Tuple
import re
import unicodedata

NOT_FOUND = -1

# Alias por campo canónico, del más específico al más genérico.
# El orden de los campos importa: es el orden en que se documentan en la plantilla.
PRODUCT_COLUMN_ALIASES: Dict[str, Tuple[str, ...]] = {
    "id": ("id", "codigo", "sku", "codigo_producto"),
    "nombre": ("nombre", "name", "producto", "descripcion"),
    "ubicacion": ("ubicacion", "location", "almacen", "bodega"),
    "numero_lotes": ("numero_lotes", "lotes", "numero lotes", "num_lotes", "cantidad_lotes"),
    "tamano_lote": ("tamano_lote", "tamaño_lote", "tamano lote", "tamaño lote", "size_lote"),
    "unidades": ("unidades", "units", "unidad"),
    "cantidad_disponible": ("cantidad_disponible", "cantidad", "stock", "disponible", "cantidad disponible"),
    "fecha_expiracion": ("fecha_expiracion", "expiracion", "fecha exp", "fecha_exp", "vencimiento"),
    "proveedores": ("proveedores", "proveedor", "supplier", "vendedor"),
    "umbral_minimo": ("umbral_minimo", "minimo", "min", "umbral minimo", "stock_minimo"),
    "umbral_maximo": ("umbral_maximo", "maximo", "max", "umbral maximo", "stock_maximo"),
    "entrada": ("entrada", "entry", "ingreso"),
    "precio_compra": ("precio_compra", "precio", "price", "precio compra", "costo"),
    "total_compra": ("total_compra", "total", "total compra", "monto_total"),
    "imagen_url": ("imagen_url", "imagen", "image", "foto", "url_imagen"),
    "categoria_abc": ("categoria_abc", "categoria", "category", "tipo"),
}

_WHITESPACE_RE = re.compile(r"\s+")
_NON_WORD_RE = re.compile(r"[^\w_]", re.ASCII)


def normalize_column_name(name: str) -> str:
    """
    Normaliza un encabezado o alias: minúsculas, sin tildes, espacios a '_'
    y sin caracteres fuera de [A-Za-z0-9_].

    Examples:
        "Número de Lotes" -> "numero_de_lotes"
        " Tamaño  Lote "  -> "tamano_lote"
    """
    text = (name or "").lower()
    text = unicodedata.normalize("NFD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = _WHITESPACE_RE.sub("_", text.strip())
    text = _NON_WORD_RE.sub("", text)
    return text.strip()


def resolve_column(normalized_headers: Sequence[str], aliases: Sequence[str]) -> int:
    """
    Devuelve el índice de la primera columna que coincide con algún alias.

    Los alias se prueban en orden de prioridad; para cada uno se busca primero
    un encabezado idéntico y, si no hay, el primero que lo contenga o esté
    contenido en él.

    Args:
        normalized_headers: Encabezados ya normalizados con normalize_column_name
        aliases: Alias candidatos (sin normalizar) en orden de prioridad

    Returns:
        Índice de la columna o NOT_FOUND (-1)
    """
    for alias in aliases:
        wanted = normalize_column_name(alias)
        if not wanted:
            continue
        if wanted in normalized_headers:
            return normalized_headers.index(wanted)
        for index, header in enumerate(normalized_headers):
            # Un encabezado vacío estaría contenido en cualquier alias
            if not header:
                continue
            if wanted in header or header in wanted:
                return index
    return NOT_FOUND


class ColumnMapping:
    """
    Asociación campo canónico -> índice de columna, resuelta una vez por archivo.
    Un campo sin columna queda en -1 y quien lo consume aplica su valor por defecto.
    """

    def __init__(self, raw_headers: Sequence[str], aliases: Dict[str, Sequence[str]] = None):
        self.raw_headers: List[str] = [h.strip() for h in raw_headers]
        self.normalized_headers: List[str] = [normalize_column_name(h) for h in self.raw_headers]
        alias_table = aliases if aliases is not None else PRODUCT_COLUMN_ALIASES
        self.indexes: Dict[str, int] = {
            field: resolve_column(self.normalized_headers, field_aliases)
            for field, field_aliases in alias_table.items()
        }

    def index_of(self, field: str) -> int:
        return self.indexes.get(field, NOT_FOUND)

    def has(self, field: str) -> bool:
        return self.index_of(field) != NOT_FOUND

    def value(self, values: Sequence[str], field: str) -> str:
        """Valor crudo de la celda para el campo, o '' si no hay columna o la fila es corta."""
        index = self.index_of(field)
        if index == NOT_FOUND or index >= len(values):
            return ""
        return values[index]

    def missing_fields(self) -> List[str]:
        return [field for field, index in self.indexes.items() if index == NOT_FOUND]

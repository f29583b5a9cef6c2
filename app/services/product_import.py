# app/services/product_import.py
"""
Servicio de importación masiva de productos desde CSV.

Flujo: encabezados -> ColumnMapping -> una fila a la vez (id, duplicados,
fecha, numéricos con valor por defecto) -> un único INSERT masivo.
Las filas defectuosas nunca abortan el lote: se anotan como duplicado,
advertencia o error y se continúa con la siguiente.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Protocol, Sequence, Set
import logging
import re
import time

from app.exceptions import ProTrackBaseException
from app.schemas import ImportData, ImportResult, ProductRecord
from app.services.column_resolver import ColumnMapping
from app.services.date_normalizer import normalize_date

logger = logging.getLogger(__name__)

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_LEADING_DECIMAL_RE = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

INTEGER_FIELDS = ("numero_lotes", "tamano_lote", "unidades", "cantidad_disponible", "umbral_minimo", "umbral_maximo")
DECIMAL_FIELDS = ("precio_compra", "total_compra")
TEXT_FIELDS = ("ubicacion", "proveedores", "entrada")
NULLABLE_TEXT_FIELDS = ("imagen_url", "categoria_abc")

TEMPLATE_HEADERS = [
    "id", "nombre", "ubicacion", "numero_lotes", "tamano_lote", "unidades",
    "cantidad_disponible", "fecha_expiracion", "proveedores", "umbral_minimo",
    "umbral_maximo", "entrada", "precio_compra", "total_compra", "imagen_url",
    "categoria_abc",
]

TEMPLATE_EXAMPLE_ROW = [
    "PROD-001", "Paracetamol 500mg", "Estante A1", "10", "50", "500",
    "500", "31/12/2025", "Farmacéutica Central", "100", "1000", "Compra",
    "0.25", "125.00", "", "A",
]


class ProductStore(Protocol):
    """Acceso mínimo al almacén de productos que necesita la importación."""

    def fetch_existing_ids(self, candidate_ids: Sequence[str]) -> Set[str]: ...

    def bulk_insert(self, records: Sequence[ProductRecord]) -> None: ...


# === Parsing numérico tolerante ===

def parse_int(raw: str) -> Optional[int]:
    """Entero al inicio del texto ('12 cajas' -> 12, '3.7' -> 3); None si no hay número."""
    match = _LEADING_INT_RE.match(raw or "")
    return int(match.group(1)) if match else None


def parse_decimal(raw: str) -> Optional[float]:
    """Decimal al inicio del texto ('12.50' -> 12.5, '1,5' -> 1.0); None si no hay número."""
    match = _LEADING_DECIMAL_RE.match(raw or "")
    return float(match.group(1)) if match else None


def default_expiration(today: Optional[date] = None) -> str:
    """Fecha de expiración por defecto: exactamente un año después de hoy."""
    today = today or date.today()
    try:
        return today.replace(year=today.year + 1).isoformat()
    except ValueError:
        # 29 de febrero -> 28 de febrero del año siguiente
        return today.replace(year=today.year + 1, day=28).isoformat()


class ProductRecordBuilder:
    """
    Acumula los campos de una fila y solo entrega un ProductRecord validado
    al final; el estado parcial nunca sale de esta clase.
    """

    def __init__(self, product_id: str, user_id: Optional[str]):
        self._fields: Dict[str, Any] = {
            "id": product_id,
            "user_id": user_id or None,
            "warehouse_id": None,
        }

    def text(self, name: str, value: str) -> "ProductRecordBuilder":
        self._fields[name] = value
        return self

    def nullable_text(self, name: str, value: str) -> "ProductRecordBuilder":
        self._fields[name] = value or None
        return self

    def integer(self, name: str, raw: str) -> "ProductRecordBuilder":
        parsed = parse_int(raw)
        if parsed is None or parsed < 0:
            if raw:
                logger.debug("Valor entero inválido para %s: %r -> 0", name, raw)
            parsed = 0
        self._fields[name] = parsed
        return self

    def decimal(self, name: str, raw: str) -> "ProductRecordBuilder":
        parsed = parse_decimal(raw)
        if parsed is None or parsed < 0:
            if raw:
                logger.debug("Valor decimal inválido para %s: %r -> 0", name, raw)
            parsed = 0.0
        self._fields[name] = parsed
        return self

    def expiration(self, iso_date: str) -> "ProductRecordBuilder":
        self._fields["fecha_expiracion"] = iso_date
        return self

    def build(self) -> ProductRecord:
        return ProductRecord(**self._fields)


@dataclass
class ParsedBatch:
    """Resultado del parseo de un archivo, antes de tocar el almacén."""
    records: List[ProductRecord] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def imported_count(self) -> int:
        return len(self.records)

    @property
    def is_empty(self) -> bool:
        return not self.records and not self.duplicates

    def summary(self) -> str:
        parts = []
        if self.records:
            parts.append(f"{len(self.records)} productos importados exitosamente")
        if self.duplicates:
            parts.append(f"{len(self.duplicates)} productos omitidos por ID duplicado")
        if self.warnings:
            parts.append(f"{len(self.warnings)} advertencias de fechas inválidas")
        if self.errors:
            parts.append(f"{len(self.errors)} filas con errores")
        return ". ".join(parts)


def split_csv_lines(text: str) -> List[str]:
    """Líneas no vacías del archivo. Sin soporte de comillas ni comas embebidas."""
    return [line for line in (text or "").splitlines() if line.strip()]


def split_cells(line: str) -> List[str]:
    return [cell.strip() for cell in line.split(",")]


def candidate_ids(text: str) -> List[str]:
    """IDs presentes en el archivo, para consultar cuáles ya existen en el almacén."""
    lines = split_csv_lines(text)
    if len(lines) < 2:
        return []
    mapping = ColumnMapping(split_cells(lines[0]))
    if not mapping.has("id"):
        return []
    ids = []
    for line in lines[1:]:
        values = split_cells(line)
        if values and values[0]:
            product_id = mapping.value(values, "id")
            if product_id:
                ids.append(product_id)
    return ids


def parse_products_csv(
    text: str,
    existing_ids: Iterable[str],
    user_id: Optional[str],
    now: Optional[datetime] = None,
) -> ParsedBatch:
    """
    Convierte el texto CSV en registros listos para insertar.

    Args:
        text: Contenido completo del archivo (primera línea = encabezados)
        existing_ids: IDs ya guardados en el almacén
        user_id: Dueño asignado a cada registro creado
        now: Momento de la importación (IDs generados y expiración por defecto)

    Returns:
        ParsedBatch con registros, duplicados, advertencias y errores por fila.
        Un archivo sin filas de datos devuelve un lote vacío.
    """
    now = now or datetime.now()
    batch = ParsedBatch()
    lines = split_csv_lines(text)
    if len(lines) < 2:
        return batch

    mapping = ColumnMapping(split_cells(lines[0]))
    logger.info("Encabezados CSV: %s", mapping.raw_headers)
    logger.info("Encabezados normalizados: %s", mapping.normalized_headers)

    fallback_expiration = default_expiration(now.date())
    timestamp_ms = int(now.timestamp() * 1000)
    seen_ids: Set[str] = set(existing_ids)
    batch_ids: Set[str] = set()

    for i, line in enumerate(lines[1:], start=1):
        row_num = i + 1
        try:
            values = split_cells(line)
            if not values or not values[0]:
                continue

            if mapping.has("id"):
                product_id = mapping.value(values, "id")
                if not product_id:
                    batch.errors.append(f"Fila {row_num}: ID vacío")
                    continue
            else:
                product_id = f"PROD-{timestamp_ms}-{i}"

            if product_id in batch_ids:
                batch.duplicates.append(f'Fila {row_num}: El ID "{product_id}" está repetido en el archivo')
                continue
            if product_id in seen_ids:
                batch.duplicates.append(f'Fila {row_num}: El ID "{product_id}" ya existe en la base de datos')
                continue

            raw_date = mapping.value(values, "fecha_expiracion")
            parsed_date = normalize_date(raw_date)
            if parsed_date.is_invalid:
                batch.warnings.append(
                    f'Fila {row_num}: Fecha inválida "{raw_date}" - se usará {fallback_expiration}'
                )

            builder = ProductRecordBuilder(product_id, user_id)
            builder.text("nombre", mapping.value(values, "nombre") if mapping.has("nombre") else f"Producto {i}")
            for name in TEXT_FIELDS:
                builder.text(name, mapping.value(values, name))
            for name in NULLABLE_TEXT_FIELDS:
                builder.nullable_text(name, mapping.value(values, name))
            for name in INTEGER_FIELDS:
                builder.integer(name, mapping.value(values, name))
            for name in DECIMAL_FIELDS:
                builder.decimal(name, mapping.value(values, name))
            builder.expiration(parsed_date.value if parsed_date.ok else fallback_expiration)

            batch.records.append(builder.build())
            batch_ids.add(product_id)

        except Exception:
            logger.exception("Error procesando fila %s", row_num)
            batch.errors.append(f"Fila {row_num}: Error al procesar")

    logger.info(
        "Productos parseados: %s, duplicados: %s, advertencias: %s, errores: %s",
        len(batch.records), len(batch.duplicates), len(batch.warnings), len(batch.errors)
    )
    return batch


class ProductImportService:
    """
    Orquesta la importación: consulta IDs existentes, parsea y hace un único
    INSERT masivo. Siempre devuelve un ImportResult; nunca lanza.
    """

    def __init__(self, store: ProductStore):
        self.store = store

    def import_csv(self, text: str, user_id: Optional[str], now: Optional[datetime] = None) -> ImportResult:
        try:
            if len(split_csv_lines(text)) < 2:
                return ImportResult(success=False, error="El archivo CSV está vacío o no tiene datos")

            started = time.monotonic()
            existing_ids = self.store.fetch_existing_ids(candidate_ids(text))
            batch = parse_products_csv(text, existing_ids, user_id, now=now)

            if batch.is_empty:
                return ImportResult(success=False, error="No se pudieron procesar productos del CSV")

            if batch.records:
                try:
                    self.store.bulk_insert(batch.records)
                except ProTrackBaseException as e:
                    logger.error("Error al insertar productos: %s", e.message)
                    return ImportResult(success=False, error=f"Error al insertar productos: {e.message}")

            logger.info(
                "Importación completada: %s productos en %.2fs",
                batch.imported_count, time.monotonic() - started
            )
            return ImportResult(
                success=True,
                data=ImportData(
                    imported=batch.imported_count,
                    duplicates=batch.duplicates,
                    warnings=batch.warnings or None,
                    errors=batch.errors or None,
                    message=batch.summary(),
                ),
            )

        except Exception as e:
            logger.exception("Error importando CSV")
            return ImportResult(success=False, error=str(e) or "Error al importar CSV")


def generate_template_csv() -> str:
    """Plantilla descargable: 16 columnas en orden fijo y una fila de ejemplo."""
    return ",".join(TEMPLATE_HEADERS) + "\n" + ",".join(TEMPLATE_EXAMPLE_ROW) + "\n"

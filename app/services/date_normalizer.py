# app/services/date_normalizer.py
"""
Normalización de fechas de importación.
Convierte fechas en varios formatos locales a 'YYYY-MM-DD', distinguiendo
entre celda vacía (sin valor) y fecha inválida (requiere advertencia).
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional
import re

# D/M/YYYY o D-M-YYYY y YYYY/M/D o YYYY-M-D
_POSITIONAL_PATTERNS = (
    re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$"),
    re.compile(r"^(\d{4})[/-](\d{1,2})[/-](\d{1,2})$"),
)

# Formatos textuales aceptados como último recurso
_FALLBACK_FORMATS = (
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%d.%m.%Y",
    "%Y.%m.%d",
)

BLANK = "blank"
INVALID = "invalid"
OK = "ok"


@dataclass(frozen=True)
class NormalizedDate:
    status: str
    value: Optional[str] = None
    raw: str = ""

    @property
    def ok(self) -> bool:
        return self.status == OK

    @property
    def is_blank(self) -> bool:
        return self.status == BLANK

    @property
    def is_invalid(self) -> bool:
        return self.status == INVALID


def _build_date(year: int, month: int, day: int) -> Optional[date]:
    """Construye la fecha solo si año/mes/día forman una fecha real del calendario."""
    try:
        built = date(year, month, day)
    except ValueError:
        return None
    if (built.year, built.month, built.day) != (year, month, day):
        return None
    return built


def _parse_fallback(text: str) -> Optional[date]:
    iso_text = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        parsed = datetime.fromisoformat(iso_text)
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc)
        return parsed.date()
    except ValueError:
        pass

    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def normalize_date(raw: Optional[str]) -> NormalizedDate:
    """
    Normaliza una fecha cruda.

    Args:
        raw: Texto de la celda

    Returns:
        NormalizedDate con status OK y value 'YYYY-MM-DD', BLANK si la celda
        está vacía o INVALID si no representa una fecha real.

    Examples:
        "15/03/2024" -> "2024-03-15"
        "2024-3-5"   -> "2024-03-05"
        "31/02/2024" -> INVALID (febrero no tiene 31)
    """
    text = (raw or "").strip()
    if not text:
        return NormalizedDate(BLANK, None, raw or "")

    for pattern in _POSITIONAL_PATTERNS:
        match = pattern.match(text)
        if not match:
            continue
        first, second, third = match.groups()
        if len(first) == 4:
            year, month, day = int(first), int(second), int(third)
        else:
            day, month, year = int(first), int(second), int(third)

        built = _build_date(year, month, day)
        if built is None:
            return NormalizedDate(INVALID, None, raw)
        return NormalizedDate(OK, built.isoformat(), raw)

    parsed = _parse_fallback(text)
    if parsed is None:
        return NormalizedDate(INVALID, None, raw)
    return NormalizedDate(OK, parsed.isoformat(), raw)

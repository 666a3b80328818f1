"""
===============================================================================
TARJETA CRC — domain/report_rules.py (Motor de validación de reportes)
===============================================================================

Responsabilidades:
    - Normalizar la estación (“N+M”) y validar el orden desde <= hasta.
    - Canonicalizar la fuente de material (insensible a mayúsculas/tildes).
    - Aplicar la legalidad de boletas según (tipo_maquinaria, fuente).
    - Normalizar campos sueltos (strings vacíos, horas AM/PM, fechas, números).
    - Señalizar errores de validación tipados ANTES de cualquier escritura.

Colaboradores:
    - domain.reports.Report
    - application.usecases.reports.create_report / update_report

Reglas de boleta (apply_boleta_rules):
    R1) tipo_maquinaria fuera de RECEIPT_MACHINERY_TYPES => sin boletas.
    R2) fuente Ríos / Tajo => sin boletas.
    R3) fuente KYLCSA => boleta = None; boleta_kylcsa permitida (no vacía).
    R4) otra fuente o sin fuente => boleta permitida (6 dígitos), boleta_kylcsa = None.

Notas:
    - Funciones puras (sin I/O), seguras para llamar desde cualquier hilo.
    - apply_boleta_rules es idempotente.
===============================================================================
"""

from __future__ import annotations

import math
import re
import unicodedata
from dataclasses import dataclass, replace
from datetime import date, datetime
from typing import Any, Final, Optional

from .reports import Report, ReportKind

RANGE_PATTERN: Final = re.compile(r"^\s*(\d+)\s*\+\s*(\d+)\s*$")
_AMPM_PATTERN: Final = re.compile(r"^(\d{1,2}):(\d{2})\s*([AP]M)$", re.IGNORECASE)
_24H_PATTERN: Final = re.compile(r"^(\d{1,2}):(\d{2})$")
_NON_DIGITS: Final = re.compile(r"\D+")
_WHITESPACE: Final = re.compile(r"\s+")

BOLETA_DIGITS: Final[int] = 6

# Columnas NUMERIC(12,2) y NUMERIC(8,2): parte entera de 10 y 6 dígitos.
CANTIDAD_LIMIT: Final[float] = 1e10
HORAS_LIMIT: Final[float] = 1e6

FUENTE_RIOS: Final[str] = "Ríos"
FUENTE_TAJO: Final[str] = "Tajo"
FUENTE_KYLCSA: Final[str] = "KYLCSA"
FUENTE_PALO_DE_ARCO: Final[str] = "Palo de Arco"

# forma plegada (sin tildes, minúsculas) -> forma canónica
_SOURCE_ALIASES: Final[dict[str, str]] = {
    "rio": FUENTE_RIOS,
    "rios": FUENTE_RIOS,
    "tajo": FUENTE_TAJO,
    "kylcsa": FUENTE_KYLCSA,
    "palo de arco": FUENTE_PALO_DE_ARCO,
}

KNOWN_SOURCES: Final[frozenset[str]] = frozenset(_SOURCE_ALIASES.values())
NO_RECEIPT_SOURCES: Final[frozenset[str]] = frozenset({FUENTE_RIOS, FUENTE_TAJO})

# Sólo estos tipos acarrean material con boleta.
RECEIPT_MACHINERY_TYPES: Final[frozenset[str]] = frozenset({"vagoneta", "cabezal"})


# =============================================================================
# Errores
# =============================================================================


class ReportValidationError(ValueError):
    """Base de errores de validación locales (pre-persistencia)."""

    code: str = "INVALID_VALUE"

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "code": self.code, "msg": self.message}


class MissingRequiredField(ReportValidationError):
    code = "MISSING_REQUIRED_FIELD"

    def __init__(self, field: str):
        super().__init__(field, f'El campo "{field}" es obligatorio.')


class InvalidRangeOrder(ReportValidationError):
    code = "INVALID_RANGE_ORDER"

    def __init__(self, desde: int, hasta: int):
        self.desde = desde
        self.hasta = hasta
        super().__init__(
            "estacion",
            f"La estación “hasta” ({hasta}) no puede ser menor que “desde” ({desde}).",
        )


class InvalidReceiptFormat(ReportValidationError):
    code = "INVALID_RECEIPT_FORMAT"

    def __init__(self, field: str, value: str):
        super().__init__(
            field, f"La boleta debe tener exactamente {BOLETA_DIGITS} dígitos: {value!r}"
        )


class InvalidSourceValue(ReportValidationError):
    code = "INVALID_SOURCE_VALUE"

    def __init__(self, value: str):
        known = ", ".join(sorted(KNOWN_SOURCES))
        super().__init__("fuente", f"Fuente desconocida {value!r}. Valores: {known}")


class InvalidFieldValue(ReportValidationError):
    code = "INVALID_VALUE"


# =============================================================================
# Normalizadores atómicos
# =============================================================================


def blank_to_none(value: Any) -> Any:
    """Strings: trim y '' -> None. Otros tipos pasan tal cual."""
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def normalize_estacion(value: Optional[str]) -> Optional[str]:
    """
    'N + M' -> 'N+M'. Si no matchea el patrón se devuelve sin espacios
    (nunca se descarta lo que mandó el caller).
    """
    if value is None:
        return None
    raw = str(value)
    if not raw.strip():
        return None
    m = RANGE_PATTERN.match(raw)
    if not m:
        return _WHITESPACE.sub("", raw)
    return f"{int(m.group(1))}+{int(m.group(2))}"


def split_estacion(value: Optional[str]) -> Optional[tuple[int, int]]:
    m = RANGE_PATTERN.match(str(value or ""))
    if not m:
        return None
    return int(m.group(1)), int(m.group(2))


def validate_estacion(value: Optional[str]) -> Optional[str]:
    """Normaliza y rechaza hasta < desde."""
    normalized = normalize_estacion(value)
    pair = split_estacion(normalized)
    if pair and pair[1] < pair[0]:
        raise InvalidRangeOrder(*pair)
    return normalized


def fold_text(value: str) -> str:
    """Minúsculas, sin tildes, espacios colapsados."""
    decomposed = unicodedata.normalize("NFKD", value)
    no_marks = "".join(c for c in decomposed if not unicodedata.combining(c))
    return _WHITESPACE.sub(" ", no_marks).strip().lower()


def canonical_fuente(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    trimmed = str(value).strip()
    if not trimmed:
        return None
    return _SOURCE_ALIASES.get(fold_text(trimmed), trimmed)


def normalize_tipo_maquinaria(value: Optional[str]) -> Optional[str]:
    cleaned = blank_to_none(value)
    return str(cleaned).lower() if cleaned is not None else None


def normalize_boleta(value: Any) -> Optional[str]:
    """Quita no-dígitos y exige exactamente BOLETA_DIGITS."""
    if value is None:
        return None
    raw = str(value).strip()
    if not raw:
        return None
    digits = _NON_DIGITS.sub("", raw)
    if len(digits) != BOLETA_DIGITS:
        raise InvalidReceiptFormat("boleta", raw)
    return digits


def to_24h(value: Optional[str], *, field: str = "hora") -> Optional[str]:
    """
    '7:05 PM' -> '19:05', '7:05' -> '07:05'.

    Raises:
        InvalidFieldValue: formato desconocido u hora/minuto fuera de rango
        (AM/PM: 1..12, 24h: 0..23; minutos 0..59).
    """
    cleaned = blank_to_none(value)
    if cleaned is None:
        return None
    raw = str(cleaned)

    m = _AMPM_PATTERN.match(raw)
    if m:
        hh, mm = int(m.group(1)), int(m.group(2))
        if not 1 <= hh <= 12 or mm > 59:
            raise InvalidFieldValue(field, f"Hora inválida: {raw!r}")
        hh %= 12
        if m.group(3).upper() == "PM":
            hh += 12
        return f"{hh:02d}:{mm:02d}"

    m = _24H_PATTERN.match(raw)
    if m:
        hh, mm = int(m.group(1)), int(m.group(2))
        if hh > 23 or mm > 59:
            raise InvalidFieldValue(field, f"Hora inválida: {raw!r}")
        return f"{hh:02d}:{mm:02d}"

    raise InvalidFieldValue(field, f"Formato de hora inválido: {raw!r}")


def to_iso_date(value: Any, *, field: str = "fecha") -> Optional[str]:
    """date/datetime/'YYYY-MM-DD[...]' -> 'YYYY-MM-DD'."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    raw = str(value).strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw[:10]).isoformat()
    except ValueError as exc:
        raise InvalidFieldValue(field, f"Fecha inválida: {raw!r}") from exc


def to_number(
    value: Any, *, field: str, limit: Optional[float] = None
) -> Optional[float]:
    """Número finito; con limit exige |x| < limit (precisión de la columna)."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise InvalidFieldValue(field, f"Valor numérico inválido: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidFieldValue(field, f"Valor numérico inválido: {value!r}") from exc
    if not math.isfinite(number):
        raise InvalidFieldValue(field, f"Valor numérico inválido: {value!r}")
    if limit is not None and abs(number) >= limit:
        raise InvalidFieldValue(field, f"Valor fuera de rango: {value!r}")
    return number


def to_int(value: Any, *, field: str) -> Optional[int]:
    number = to_number(value, field=field)
    if number is None:
        return None
    if not number.is_integer():
        raise InvalidFieldValue(field, f"Se esperaba un entero: {value!r}")
    return int(number)


# =============================================================================
# Reglas de boleta
# =============================================================================


@dataclass(frozen=True)
class ReceiptFields:
    boleta: Optional[str]
    boleta_kylcsa: Optional[str]


def apply_boleta_rules(
    tipo_maquinaria: Optional[str],
    fuente: Optional[str],
    boleta: Any = None,
    boleta_kylcsa: Any = None,
) -> ReceiptFields:
    """
    Devuelve las boletas legales para (tipo_maquinaria, fuente).

    Raises:
        InvalidReceiptFormat: si la boleta estándar permitida no tiene 6 dígitos.
    """
    tipo = normalize_tipo_maquinaria(tipo_maquinaria)
    canonical = canonical_fuente(fuente)

    if tipo not in RECEIPT_MACHINERY_TYPES:
        return ReceiptFields(boleta=None, boleta_kylcsa=None)

    if canonical in NO_RECEIPT_SOURCES:
        return ReceiptFields(boleta=None, boleta_kylcsa=None)

    if canonical == FUENTE_KYLCSA:
        kylcsa = blank_to_none(boleta_kylcsa)
        return ReceiptFields(
            boleta=None,
            boleta_kylcsa=str(kylcsa) if kylcsa is not None else None,
        )

    return ReceiptFields(boleta=normalize_boleta(boleta), boleta_kylcsa=None)


# =============================================================================
# Entrada principal
# =============================================================================


def normalize_and_validate(
    report: Report, *, enforce_known_sources: bool = False
) -> Report:
    """
    Devuelve una copia normalizada del reporte o levanta ReportValidationError.

    No muta el input. Se usa igual en create y en update (sobre el merge),
    así las reglas valen después de cualquier escritura.
    """
    tipo = normalize_tipo_maquinaria(report.tipo_maquinaria)
    if tipo is None:
        raise MissingRequiredField("tipo_maquinaria")

    fecha = to_iso_date(report.fecha)
    if report.kind is ReportKind.MUNICIPAL and fecha is None:
        raise MissingRequiredField("fecha")

    fuente = canonical_fuente(report.fuente)
    if enforce_known_sources and fuente is not None and fuente not in KNOWN_SOURCES:
        raise InvalidSourceValue(fuente)

    receipts = apply_boleta_rules(tipo, fuente, report.boleta, report.boleta_kylcsa)

    placa = blank_to_none(report.placa)

    return replace(
        report,
        fecha=fecha,
        tipo_actividad=blank_to_none(report.tipo_actividad),
        tipo_maquinaria=tipo,
        placa=str(placa).upper() if placa is not None else None,
        estacion=validate_estacion(report.estacion),
        codigo_camino=blank_to_none(report.codigo_camino),
        distrito=blank_to_none(report.distrito),
        cantidad=to_number(report.cantidad, field="cantidad", limit=CANTIDAD_LIMIT),
        horas=to_number(report.horas, field="horas", limit=HORAS_LIMIT),
        hora_inicio=to_24h(report.hora_inicio, field="hora_inicio"),
        hora_fin=to_24h(report.hora_fin, field="hora_fin"),
        fuente=fuente,
        boleta=receipts.boleta,
        boleta_kylcsa=receipts.boleta_kylcsa,
        operador_id=to_int(report.operador_id, field="operador_id"),
        detalles=dict(report.detalles or {}),
    )

"""
Name: Report Validation Rules Tests

Responsibilities:
  - Range token normalization and ordering
  - Canonical source and receipt legality (standard vs KYLCSA)
  - normalize_and_validate end-to-end on a draft report
"""

import pytest

from bitacora.domain.report_rules import (
    FUENTE_KYLCSA,
    FUENTE_RIOS,
    FUENTE_TAJO,
    InvalidFieldValue,
    InvalidRangeOrder,
    InvalidReceiptFormat,
    InvalidSourceValue,
    MissingRequiredField,
    ReceiptFields,
    apply_boleta_rules,
    canonical_fuente,
    normalize_and_validate,
    normalize_estacion,
    to_24h,
    validate_estacion,
)
from bitacora.domain.reports import Report, ReportKind

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Estación (rango desde+hasta)
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("10+20", "10+20"),
        ("  10 +  20 ", "10+20"),
        ("0010+0020", "10+20"),
        ("5+5", "5+5"),
    ],
)
def test_normalize_estacion_removes_whitespace(raw, expected):
    assert normalize_estacion(raw) == expected


def test_normalize_estacion_keeps_unparseable_value_without_spaces():
    assert normalize_estacion("km 4 aprox") == "km4aprox"


def test_normalize_estacion_blank_is_none():
    assert normalize_estacion("   ") is None
    assert normalize_estacion(None) is None


def test_validate_estacion_rejects_reversed_range():
    with pytest.raises(InvalidRangeOrder) as exc_info:
        validate_estacion("30 + 12")

    assert exc_info.value.desde == 30
    assert exc_info.value.hasta == 12
    assert exc_info.value.to_dict()["code"] == "INVALID_RANGE_ORDER"


# ---------------------------------------------------------------------------
# Fuente canónica
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("rios", FUENTE_RIOS),
        ("  RÍOS ", FUENTE_RIOS),
        ("Rio", FUENTE_RIOS),
        ("tajo", FUENTE_TAJO),
        ("kylcsa", FUENTE_KYLCSA),
        ("palo  de ARCO", "Palo de Arco"),
        ("Quebrador San Juan", "Quebrador San Juan"),
    ],
)
def test_canonical_fuente(raw, expected):
    assert canonical_fuente(raw) == expected


# ---------------------------------------------------------------------------
# Boletas
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("fuente", ["Ríos", "rios", "TAJO", "tajo "])
def test_no_receipt_sources_clear_both_receipts(fuente):
    result = apply_boleta_rules("vagoneta", fuente, "123456", "K-99")

    assert result == ReceiptFields(boleta=None, boleta_kylcsa=None)


def test_kylcsa_keeps_only_alternate_receipt():
    result = apply_boleta_rules("vagoneta", "KYLCSA", "123456", "K-99")

    assert result.boleta is None
    assert result.boleta_kylcsa == "K-99"


def test_other_source_keeps_only_standard_receipt():
    result = apply_boleta_rules("cabezal", "Palo de Arco", "12-34-56", "K-99")

    assert result.boleta == "123456"
    assert result.boleta_kylcsa is None


def test_machinery_without_receipts_clears_both():
    result = apply_boleta_rules("excavadora", "Palo de Arco", "123456", "K-99")

    assert result == ReceiptFields(boleta=None, boleta_kylcsa=None)


def test_standard_receipt_must_have_six_digits():
    with pytest.raises(InvalidReceiptFormat):
        apply_boleta_rules("vagoneta", "Palo de Arco", "12345")


@pytest.mark.parametrize(
    "tipo, fuente, boleta, kylcsa",
    [
        ("vagoneta", "Ríos", "123456", "K-1"),
        ("vagoneta", "KYLCSA", "123456", "K-1"),
        ("cabezal", "Palo de Arco", "654321", None),
        ("niveladora", "Tajo", None, "K-2"),
    ],
)
def test_apply_boleta_rules_is_idempotent(tipo, fuente, boleta, kylcsa):
    once = apply_boleta_rules(tipo, fuente, boleta, kylcsa)
    twice = apply_boleta_rules(tipo, fuente, once.boleta, once.boleta_kylcsa)

    assert once == twice


# ---------------------------------------------------------------------------
# normalize_and_validate
# ---------------------------------------------------------------------------


def _draft(**overrides) -> Report:
    fields = dict(
        kind=ReportKind.MUNICIPAL,
        fecha="2025-03-10",
        tipo_maquinaria="Vagoneta",
        fuente="kylcsa",
        boleta="123456",
        boleta_kylcsa="K-99",
        estacion=" 10 + 20 ",
        placa=" sm-1234 ",
        hora_inicio="7:05 AM",
        hora_fin="3:30 PM",
        cantidad="12.5",
    )
    fields.update(overrides)
    return Report(**fields)


def test_normalize_and_validate_kylcsa_scenario():
    result = normalize_and_validate(_draft())

    assert result.boleta is None
    assert result.boleta_kylcsa == "K-99"
    assert result.fuente == FUENTE_KYLCSA
    assert result.tipo_maquinaria == "vagoneta"
    assert result.estacion == "10+20"
    assert result.placa == "SM-1234"
    assert result.hora_inicio == "07:05"
    assert result.hora_fin == "15:30"
    assert result.cantidad == 12.5


def test_normalize_and_validate_does_not_mutate_input():
    draft = _draft()

    normalize_and_validate(draft)

    assert draft.estacion == " 10 + 20 "
    assert draft.boleta == "123456"


def test_normalize_and_validate_is_stable_on_normalized_input():
    once = normalize_and_validate(_draft())

    assert normalize_and_validate(once) == once


def test_missing_tipo_maquinaria():
    with pytest.raises(MissingRequiredField) as exc_info:
        normalize_and_validate(_draft(tipo_maquinaria="  "))

    assert exc_info.value.field == "tipo_maquinaria"


def test_municipal_requires_fecha_but_rental_does_not():
    with pytest.raises(MissingRequiredField):
        normalize_and_validate(_draft(fecha=None))

    rental = normalize_and_validate(_draft(kind=ReportKind.RENTAL, fecha=None))
    assert rental.fecha is None


def test_unknown_source_only_rejected_when_enforced():
    draft = _draft(fuente="Quebrador X", boleta="111111", boleta_kylcsa=None)

    assert normalize_and_validate(draft).fuente == "Quebrador X"
    with pytest.raises(InvalidSourceValue):
        normalize_and_validate(draft, enforce_known_sources=True)


def test_invalid_number_is_rejected():
    with pytest.raises(InvalidFieldValue):
        normalize_and_validate(_draft(horas="muchas"))


def test_to_24h_passes_through_24h_values():
    assert to_24h("12:15 AM") == "00:15"
    assert to_24h("12:15 PM") == "12:15"
    assert to_24h("18:40") == "18:40"
    assert to_24h("") is None


@pytest.mark.parametrize(
    "raw, expected",
    [("7:05 AM", "07:05"), ("11:59 pm", "23:59"), ("7:05", "07:05"), ("00:00", "00:00")],
)
def test_to_24h_normalizes_valid_times(raw, expected):
    assert to_24h(raw) == expected


@pytest.mark.parametrize("raw", ["99:00 AM", "0:30 AM", "13:75 PM", "12:60 AM", "24:00", "7:61", "mañana"])
def test_to_24h_rejects_out_of_range_or_unknown_format(raw):
    with pytest.raises(InvalidFieldValue):
        to_24h(raw)


def test_invalid_hour_reports_its_field():
    with pytest.raises(InvalidFieldValue) as info:
        normalize_and_validate(_draft(hora_fin="13:75 PM"))

    assert info.value.field == "hora_fin"


@pytest.mark.parametrize("raw", ["nan", "inf", "-inf", "1e400"])
def test_non_finite_numbers_are_rejected(raw):
    with pytest.raises(InvalidFieldValue) as info:
        normalize_and_validate(_draft(cantidad=raw))

    assert info.value.field == "cantidad"


def test_numbers_beyond_column_precision_are_rejected():
    with pytest.raises(InvalidFieldValue) as info:
        normalize_and_validate(_draft(horas="1000000"))
    assert info.value.field == "horas"

    with pytest.raises(InvalidFieldValue):
        normalize_and_validate(_draft(cantidad=1e10))

    assert normalize_and_validate(_draft(cantidad="9999999999.99")).cantidad == 9999999999.99

from datetime import date

import pytest

from app.exceptions import BusinessRuleError, ValidationError, ErrorCodes
from app.services import MovementService


def test_entry_adds_and_exit_subtracts():
    assert MovementService.apply_movement(10, "Entrada", 5) == 15
    assert MovementService.apply_movement(10, "Salida", 4) == 6


def test_exit_never_goes_below_zero():
    assert MovementService.apply_movement(3, "Salida", 10) == 0
    assert MovementService.stock_delta("Salida", 10) == -10


def test_type_is_normalized_and_validated():
    assert MovementService.validate_type("salida") == "Salida"
    with pytest.raises(ValidationError) as exc:
        MovementService.validate_type("Ajuste")
    assert exc.value.code == ErrorCodes.MOVEMENT_INVALID_TYPE


@pytest.mark.parametrize("units", [0, -1, "abc", None])
def test_units_must_be_positive_integers(units):
    with pytest.raises(ValidationError):
        MovementService.validate_units(units)


def test_prepare_movement_defaults_date_to_today():
    data = MovementService.prepare_movement(
        {"product_id": " P1 ", "tipo_movimiento": "Entrada", "unidades": "3"}, "u-1"
    )
    assert data["product_id"] == "P1"
    assert data["unidades"] == 3
    assert data["fecha_movimiento"] == date.today()
    assert data["user_id"] == "u-1"


def test_transfer_requires_different_sites():
    with pytest.raises(BusinessRuleError) as exc:
        MovementService.prepare_transfer(
            {"product_id": "P1", "sede_origen": "Lima", "destino": "lima"}, "u-1"
        )
    assert exc.value.code == ErrorCodes.TRANSFER_SAME_SITE


def test_transfer_requires_destination():
    with pytest.raises(ValidationError) as exc:
        MovementService.prepare_transfer({"product_id": "P1", "sede_origen": "Lima"}, "u-1")
    assert exc.value.details == {"field": "destino"}


def test_csv_export_uses_given_headers():
    rows = [{"id": "m1", "product_id": "P1", "producto": "Widget", "tipo_movimiento": "Entrada",
             "unidades": 2, "fecha_movimiento": date(2024, 5, 1), "precio_venta": None}]
    content = MovementService.generate_csv_content(rows, MovementService.MOVEMENT_CSV_HEADERS)
    lines = content.splitlines()
    assert lines[0] == ",".join(MovementService.MOVEMENT_CSV_HEADERS)
    assert lines[1] == "m1,P1,Widget,Entrada,2,2024-05-01,,"


def test_csv_export_without_rows_fails():
    with pytest.raises(ValidationError) as exc:
        MovementService.generate_csv_content([], MovementService.TRANSFER_CSV_HEADERS)
    assert exc.value.code == ErrorCodes.EXPORT_NO_DATA

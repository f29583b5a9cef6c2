from datetime import date

from app.services import ProductService
from app.services.product_import import parse_products_csv


def test_export_with_commas_in_text_can_be_reimported(import_time):
    products = [{
        "id": "T1",
        "nombre": "Tomate, caja",
        "ubicacion": "Pasillo 3, estante 2",
        "cantidad_disponible": 12,
        "fecha_expiracion": date(2030, 1, 15),
        "proveedores": 'Agro "Sur", SAC',
        "precio_compra": 3.5,
        "imagen_url": None,
    }]

    content = ProductService.generate_csv_content(products)
    lines = content.splitlines()
    assert len(lines) == 2
    assert len(lines[1].split(",")) == len(ProductService.EXPORT_CSV_HEADERS)

    batch = parse_products_csv(content, set(), "u-1", now=import_time)
    assert batch.errors == []
    assert batch.warnings == []
    record = batch.records[0]
    assert record.id == "T1"
    assert record.nombre == "Tomate caja"
    assert record.ubicacion == "Pasillo 3 estante 2"
    assert record.proveedores == "Agro Sur SAC"
    assert record.cantidad_disponible == 12
    assert record.precio_compra == 3.5
    assert record.fecha_expiracion == "2030-01-15"


def test_export_cell_keeps_numbers_and_blanks_none():
    assert ProductService.export_cell(None) == ""
    assert ProductService.export_cell(7) == 7
    assert ProductService.export_cell("  Gasa\nestéril ") == "Gasa estéril"
    assert ProductService.export_cell("a;b", delimiter=";") == "a b"

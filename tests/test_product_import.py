from datetime import date

from app.exceptions import StoreError, ErrorCodes
from app.services.product_import import (
    ProductImportService,
    TEMPLATE_HEADERS,
    candidate_ids,
    default_expiration,
    generate_template_csv,
    parse_decimal,
    parse_int,
    parse_products_csv,
)

from conftest import InMemoryProductStore


def test_repeated_id_in_file_is_imported_once(store, import_time):
    csv_text = "id,nombre,cantidad_disponible\nP1,Widget,10\nP1,Widget2,20"

    result = ProductImportService(store).import_csv(csv_text, "u-1", now=import_time)

    assert result.success
    assert result.data.imported == 1
    assert result.data.duplicates == ['Fila 3: El ID "P1" está repetido en el archivo']
    saved = store.products["P1"]
    assert saved["nombre"] == "Widget"
    assert saved["cantidad_disponible"] == 10
    assert saved["fecha_expiracion"] == "2025-05-10"
    assert saved["user_id"] == "u-1"


def test_existing_ids_are_reported_and_skipped(import_time):
    store = InMemoryProductStore([{"id": "P1", "nombre": "Viejo"}])
    csv_text = "id,nombre\nP1,Nuevo\nP2,Otro\n"

    result = ProductImportService(store).import_csv(csv_text, "u-1", now=import_time)

    assert result.success
    assert result.data.imported == 1
    assert result.data.duplicates == ['Fila 2: El ID "P1" ya existe en la base de datos']
    assert store.products["P1"]["nombre"] == "Viejo"
    assert "P2" in store.products
    assert result.data.message == (
        "1 productos importados exitosamente. 1 productos omitidos por ID duplicado"
    )


def test_reimporting_same_file_inserts_nothing_new(store, import_time):
    csv_text = "id,nombre\nA,Uno\nB,Dos\n"
    service = ProductImportService(store)

    first = service.import_csv(csv_text, "u-1", now=import_time)
    second = service.import_csv(csv_text, "u-1", now=import_time)

    assert first.data.imported == 2
    assert second.success
    assert second.data.imported == 0
    assert len(second.data.duplicates) == 2
    assert store.insert_calls == 1
    assert sorted(store.products) == ["A", "B"]


def test_parsed_ids_never_collide(import_time):
    csv_text = "id,nombre\nA,1\nB,2\nA,3\nC,4\nB,5\n"
    batch = parse_products_csv(csv_text, {"C"}, "u-1", now=import_time)

    ids = [r.id for r in batch.records]
    assert ids == ["A", "B"]
    assert len(set(ids)) == len(ids)
    assert len(batch.duplicates) == 3


def test_empty_file_fails_without_touching_store(store):
    for text in ["", "id,nombre\n", "\n\n"]:
        result = ProductImportService(store).import_csv(text, "u-1")
        assert not result.success
        assert result.error == "El archivo CSV está vacío o no tiene datos"
    assert store.insert_calls == 0


def test_rows_without_first_cell_leave_nothing_to_import(store):
    result = ProductImportService(store).import_csv("id,nombre\n,Sin ID\n", "u-1")

    assert not result.success
    assert result.error == "No se pudieron procesar productos del CSV"


def test_invalid_date_warns_and_uses_default(import_time):
    csv_text = (
        "id,nombre,fecha_expiracion\n"
        "P1,A,31/02/2024\n"
        "P2,B,15/03/2026\n"
        "P3,C,\n"
    )
    batch = parse_products_csv(csv_text, set(), "u-1", now=import_time)

    assert batch.warnings == ['Fila 2: Fecha inválida "31/02/2024" - se usará 2025-05-10']
    dates = {r.id: r.fecha_expiracion for r in batch.records}
    assert dates == {"P1": "2025-05-10", "P2": "2026-03-15", "P3": "2025-05-10"}


def test_ids_are_generated_without_id_column(import_time):
    csv_text = "nombre,precio\nA,1.5\nB,2\n"
    batch = parse_products_csv(csv_text, set(), None, now=import_time)

    stamp = int(import_time.timestamp() * 1000)
    assert [r.id for r in batch.records] == [f"PROD-{stamp}-1", f"PROD-{stamp}-2"]
    assert [r.precio_compra for r in batch.records] == [1.5, 2.0]
    assert all(r.user_id is None for r in batch.records)


def test_empty_id_cell_is_a_row_error(import_time):
    batch = parse_products_csv("nombre,id\nA,\nB,P2\n", set(), "u-1", now=import_time)

    assert batch.errors == ["Fila 2: ID vacío"]
    assert [r.id for r in batch.records] == ["P2"]


def test_numeric_cells_are_lenient(import_time):
    csv_text = "id,nombre,cantidad_disponible,precio_compra\nP1,A,12 cajas,abc\nP2,B,-3,4.5\n"
    batch = parse_products_csv(csv_text, set(), "u-1", now=import_time)

    first, second = batch.records
    assert (first.cantidad_disponible, first.precio_compra) == (12, 0.0)
    assert (second.cantidad_disponible, second.precio_compra) == (0, 4.5)
    assert batch.warnings == []


def test_store_rejection_fails_the_whole_import(import_time):
    class RejectingStore(InMemoryProductStore):
        def bulk_insert(self, records):
            raise StoreError("conexión rechazada", ErrorCodes.STORE_REJECTED)

    result = ProductImportService(RejectingStore()).import_csv("id,nombre\nP1,A\n", "u-1", now=import_time)

    assert not result.success
    assert result.error == "Error al insertar productos: conexión rechazada"


def test_unexpected_failure_is_returned_not_raised():
    class BrokenStore(InMemoryProductStore):
        def fetch_existing_ids(self, candidate_ids):
            raise RuntimeError("sin conexión")

    result = ProductImportService(BrokenStore()).import_csv("id,nombre\nP1,A\n", "u-1")

    assert not result.success
    assert result.error == "sin conexión"


def test_template_round_trips_through_import(import_time):
    template = generate_template_csv()
    assert template.splitlines()[0] == ",".join(TEMPLATE_HEADERS)

    batch = parse_products_csv(template, set(), "u-1", now=import_time)

    assert batch.errors == [] and batch.warnings == []
    record = batch.records[0]
    assert record.id == "PROD-001"
    assert record.cantidad_disponible == 500
    assert record.fecha_expiracion == "2025-12-31"
    assert record.proveedores == "Farmacéutica Central"
    assert record.precio_compra == 0.25
    assert record.imagen_url is None
    assert record.categoria_abc == "A"


def test_candidate_ids_reads_the_resolved_id_column():
    assert candidate_ids("nombre,sku\nA,S1\nB,S2\n") == ["S1", "S2"]
    assert candidate_ids("nombre\nA\n") == []


def test_lenient_number_parsers():
    assert parse_int("12 cajas") == 12
    assert parse_int("3.7") == 3
    assert parse_int("x") is None
    assert parse_decimal("12.50") == 12.5
    assert parse_decimal("1,5") == 1.0
    assert parse_decimal("") is None


def test_default_expiration_is_one_year_ahead():
    assert default_expiration(date(2024, 5, 10)) == "2025-05-10"
    assert default_expiration(date(2024, 2, 29)) == "2025-02-28"

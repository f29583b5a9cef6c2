# app/database/repositories/product_repo.py

import logging
import psycopg2
import psycopg2.errors
import psycopg2.extras
from ..core import get_db_connection, return_db_connection, execute_query, execute_commit_query
from app.exceptions import DuplicateError, StoreError, ErrorCodes

logger = logging.getLogger(__name__)

PRODUCT_INSERT_COLUMNS = [
    "id", "nombre", "ubicacion", "numero_lotes", "tamano_lote", "unidades",
    "cantidad_disponible", "fecha_expiracion", "proveedores", "umbral_minimo",
    "umbral_maximo", "entrada", "precio_compra", "total_compra", "imagen_url",
    "categoria_abc", "warehouse_id", "user_id",
]

UPDATABLE_COLUMNS = set(PRODUCT_INSERT_COLUMNS) - {"id", "user_id"}

_SELECT_PRODUCT = """
    SELECT p.id, p.nombre, p.ubicacion, p.numero_lotes, p.tamano_lote, p.unidades,
           p.cantidad_disponible, p.fecha_expiracion, p.proveedores, p.umbral_minimo,
           p.umbral_maximo, p.entrada, p.precio_compra, p.total_compra, p.imagen_url,
           p.categoria_abc, p.codigo_barras, p.warehouse_id, p.user_id,
           p.created_at, p.updated_at
    FROM products p
"""

# --- PRODUCTOS ---

def get_products_by_company(company_id):
    """
    Productos cuyos dueños pertenecen a la empresa, más recientes primero.
    Los precios NUMERIC se devuelven como float para el motor de filtros.
    """
    query = _SELECT_PRODUCT + """
    JOIN profiles pr ON pr.id = p.user_id
    WHERE pr.company_id = %s
    ORDER BY p.created_at DESC
    """
    rows = execute_query(query, (company_id,), fetchall=True) or []
    return [_row_to_dict(row) for row in rows]

def get_product(product_id, company_id):
    """ Obtiene un producto por su ID dentro de la empresa, o None. """
    query = _SELECT_PRODUCT + """
    JOIN profiles pr ON pr.id = p.user_id
    WHERE p.id = %s AND pr.company_id = %s
    """
    row = execute_query(query, (product_id, company_id), fetchone=True)
    return _row_to_dict(row) if row else None

def create_product(data: dict):
    """
    Crea un producto.
    NOTA: Los datos deben venir ya validados desde el Service Layer.
    """
    columns = [c for c in PRODUCT_INSERT_COLUMNS if c in data]
    placeholders = ", ".join(["%s"] * len(columns))
    query = f"INSERT INTO products ({', '.join(columns)}) VALUES ({placeholders}) RETURNING id"
    params = tuple(data[c] for c in columns)

    try:
        result = execute_commit_query(query, params, fetchone=True)
        return result["id"]
    except psycopg2.errors.UniqueViolation:
        raise DuplicateError(
            f"El ID '{data.get('id')}' ya existe.",
            ErrorCodes.PRODUCT_ID_DUPLICATE,
            {"id": data.get("id")}
        )

def update_product(product_id, company_id, updates: dict):
    """Actualiza solo los campos recibidos. Devuelve False si el producto no existe en la empresa."""
    set_clauses = []
    params = []
    for key, val in updates.items():
        if key in UPDATABLE_COLUMNS:
            set_clauses.append(f"{key} = %s")
            params.append(val)

    if not set_clauses:
        return get_product(product_id, company_id) is not None

    set_clauses.append("updated_at = NOW()")
    params.extend([product_id, company_id])
    query = f"""
        UPDATE products p SET {', '.join(set_clauses)}
        FROM profiles pr
        WHERE p.id = %s AND pr.id = p.user_id AND pr.company_id = %s
        RETURNING p.id
    """
    res = execute_commit_query(query, tuple(params), fetchone=True)
    return bool(res)

def delete_product(product_id, company_id):
    """Elimina el producto de la empresa (sus movimientos y transferencias caen en cascada)."""
    query = """
        DELETE FROM products p USING profiles pr
        WHERE p.id = %s AND pr.id = p.user_id AND pr.company_id = %s
        RETURNING p.id
    """
    res = execute_commit_query(query, (product_id, company_id), fetchone=True)
    return bool(res)

def find_existing_product_ids(product_ids):
    """De la lista recibida, devuelve los IDs que ya están guardados."""
    if not product_ids:
        return set()
    rows = execute_query(
        "SELECT id FROM products WHERE id = ANY(%s)", (list(product_ids),), fetchall=True
    ) or []
    return {row["id"] for row in rows}

def bulk_insert_products(records):
    """
    Inserta todos los registros en una sola transacción: o entran todos o ninguno.

    Raises:
        DuplicateError: Si el almacén rechaza un ID repetido
        StoreError: Cualquier otro rechazo del almacén
    """
    if not records:
        return 0

    rows = [tuple(record[c] for c in PRODUCT_INSERT_COLUMNS) for record in records]
    query = f"INSERT INTO products ({', '.join(PRODUCT_INSERT_COLUMNS)}) VALUES %s"

    conn = None
    try:
        conn = get_db_connection()
        with conn.cursor() as cursor:
            psycopg2.extras.execute_values(cursor, query, rows, page_size=500)
        conn.commit()
        return len(rows)

    except psycopg2.errors.UniqueViolation as e:
        if conn: conn.rollback()
        raise DuplicateError(
            f"ID duplicado en el almacén: {e.diag.message_detail or e}",
            ErrorCodes.PRODUCT_ID_DUPLICATE
        )
    except psycopg2.Error as e:
        if conn: conn.rollback()
        logger.error("[DB-ERROR] bulk_insert_products: %s", e)
        raise StoreError(
            str(e).strip() or "El almacén rechazó la inserción",
            ErrorCodes.STORE_REJECTED
        )
    finally:
        if conn:
            return_db_connection(conn)

def _row_to_dict(row):
    product = dict(row)
    for key in ("precio_compra", "total_compra"):
        if product.get(key) is not None:
            product[key] = float(product[key])
    return product


class PostgresProductStore:
    """Adaptador de las funciones del repositorio a la interfaz ProductStore."""

    def fetch_existing_ids(self, candidate_ids):
        return find_existing_product_ids(candidate_ids)

    def bulk_insert(self, records):
        return bulk_insert_products([record.model_dump() for record in records])

    def fetch_products(self, company_id):
        return get_products_by_company(company_id)

    def get_product(self, product_id, company_id):
        return get_product(product_id, company_id)

    def create_product(self, data):
        return create_product(data)

    def update_product(self, product_id, company_id, updates):
        return update_product(product_id, company_id, updates)

    def delete_product(self, product_id, company_id):
        return delete_product(product_id, company_id)

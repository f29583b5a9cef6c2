# app/database/repositories/movement_repo.py

import logging
from ..core import get_db_connection, return_db_connection, execute_query, execute_commit_query

logger = logging.getLogger(__name__)

# --- MOVIMIENTOS ---

def create_movement_with_stock(movement: dict, stock_delta: int, company_id):
    """
    Registra el movimiento y ajusta cantidad_disponible en la MISMA transacción.
    El stock nunca baja de cero.
    NOTA: stock_delta ya viene calculado por el Service Layer (+ entrada, - salida).

    Returns:
        dict del movimiento creado con el stock resultante, o None si el producto
        no existe en la empresa.
    """
    conn = None
    try:
        conn = get_db_connection()
        with conn.cursor() as cursor:
            # Bloqueamos la fila del producto mientras dura la operación
            cursor.execute("""
                SELECT p.cantidad_disponible FROM products p
                JOIN profiles pr ON pr.id = p.user_id
                WHERE p.id = %s AND pr.company_id = %s
                FOR UPDATE OF p
            """, (movement["product_id"], company_id))
            if cursor.fetchone() is None:
                conn.rollback()
                return None

            cursor.execute("""
                INSERT INTO movements (product_id, tipo_movimiento, unidades, fecha_movimiento,
                                       precio_venta, ganancia, user_id)
                VALUES (%s, %s, %s, %s, %s, %s, %s)
                RETURNING id, product_id, tipo_movimiento, unidades, fecha_movimiento,
                          precio_venta, ganancia, user_id
            """, (
                movement["product_id"], movement["tipo_movimiento"], movement["unidades"],
                movement["fecha_movimiento"], movement.get("precio_venta"),
                movement.get("ganancia"), movement.get("user_id")
            ))
            created = dict(cursor.fetchone())

            cursor.execute("""
                UPDATE products
                SET cantidad_disponible = GREATEST(0, cantidad_disponible + %s),
                    updated_at = NOW()
                WHERE id = %s
                RETURNING cantidad_disponible
            """, (stock_delta, movement["product_id"]))
            created["cantidad_disponible"] = cursor.fetchone()["cantidad_disponible"]

        conn.commit()
        return created

    except Exception as e:
        if conn:
            conn.rollback()
        logger.error("[DB-ERROR] create_movement_with_stock: %s", e)
        raise

    finally:
        if conn:
            return_db_connection(conn)

def get_movements_by_company(company_id):
    """Movimientos de los productos de la empresa, más recientes primero."""
    query = """
        SELECT m.id, m.product_id, p.nombre AS producto, m.tipo_movimiento, m.unidades,
               m.fecha_movimiento, m.precio_venta, m.ganancia, m.user_id
        FROM movements m
        JOIN products p ON p.id = m.product_id
        JOIN profiles pr ON pr.id = p.user_id
        WHERE pr.company_id = %s
        ORDER BY m.fecha_movimiento DESC, m.created_at DESC
    """
    return [dict(r) for r in execute_query(query, (company_id,), fetchall=True) or []]

def get_movements_by_product(product_id, company_id):
    query = """
        SELECT m.id, m.product_id, m.tipo_movimiento, m.unidades, m.fecha_movimiento,
               m.precio_venta, m.ganancia, m.user_id
        FROM movements m
        JOIN products p ON p.id = m.product_id
        JOIN profiles pr ON pr.id = p.user_id
        WHERE m.product_id = %s AND pr.company_id = %s
        ORDER BY m.fecha_movimiento DESC, m.created_at DESC
    """
    return [dict(r) for r in execute_query(query, (product_id, company_id), fetchall=True) or []]

# --- TRANSFERENCIAS ---

def create_transfer(transfer: dict):
    """Registra una transferencia entre sedes. No modifica el stock."""
    query = """
        INSERT INTO transfers (product_id, sede_origen, destino, fecha, motivo, encargado, user_id)
        VALUES (%s, %s, %s, %s, %s, %s, %s)
        RETURNING id, product_id, sede_origen, destino, fecha, motivo, encargado, user_id
    """
    params = (
        transfer["product_id"], transfer["sede_origen"], transfer["destino"],
        transfer["fecha"], transfer.get("motivo"), transfer.get("encargado"),
        transfer.get("user_id")
    )
    return dict(execute_commit_query(query, params, fetchone=True))

def get_transfers_by_company(company_id):
    query = """
        SELECT t.id, t.product_id, p.nombre AS producto, t.sede_origen, t.destino,
               t.fecha, t.motivo, t.encargado, t.user_id
        FROM transfers t
        JOIN products p ON p.id = t.product_id
        JOIN profiles pr ON pr.id = p.user_id
        WHERE pr.company_id = %s
        ORDER BY t.fecha DESC, t.created_at DESC
    """
    return [dict(r) for r in execute_query(query, (company_id,), fetchall=True) or []]

def get_transfers_by_product(product_id, company_id):
    query = """
        SELECT t.id, t.product_id, t.sede_origen, t.destino, t.fecha, t.motivo, t.encargado, t.user_id
        FROM transfers t
        JOIN products p ON p.id = t.product_id
        JOIN profiles pr ON pr.id = p.user_id
        WHERE t.product_id = %s AND pr.company_id = %s
        ORDER BY t.fecha DESC, t.created_at DESC
    """
    return [dict(r) for r in execute_query(query, (product_id, company_id), fetchall=True) or []]

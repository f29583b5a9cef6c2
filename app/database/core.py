#app/database/core.py

import psycopg2
import psycopg2.pool
import psycopg2.extras
import logging
import os
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# --- CONFIGURACIÓN DEL POOL GLOBAL ---
db_pool = None
DATABASE_URL = None

def init_db_pool():
    """
    Inicializa el pool de conexiones contra el Postgres del backend gestionado.
    Es un pool con lock: los endpoints lo usan desde hilos de asyncio.to_thread.
    """
    global db_pool, DATABASE_URL
    if db_pool:
        return

    load_dotenv()
    DATABASE_URL = os.environ.get("DATABASE_URL")

    if DATABASE_URL is None:
        raise ValueError("No se pudo conectar: DATABASE_URL no está configurada.")

    min_conn = int(os.environ.get("DB_POOL_MIN", "1"))
    max_conn = int(os.environ.get("DB_POOL_MAX", "10"))

    try:
        db_pool = psycopg2.pool.ThreadedConnectionPool(min_conn, max_conn, dsn=DATABASE_URL)

        # Probar conexión
        conn = db_pool.getconn()
        if "localhost" in DATABASE_URL:
            logger.info("Pool de BD (Local) creado.")
        else:
            logger.info("Pool de BD (Producción) creado.")
        db_pool.putconn(conn)

    except psycopg2.OperationalError:
        logger.exception("ERROR CRÍTICO AL CREAR EL POOL DE BD")
        raise

def close_db_pool():
    """Cierra todas las conexiones del pool (apagado del servidor)."""
    global db_pool
    if db_pool:
        db_pool.closeall()
        db_pool = None

def get_db_connection():
    """Helper para obtener una conexión raw del pool (para transacciones manuales)"""
    global db_pool
    if not db_pool:
        init_db_pool()
    conn = db_pool.getconn()
    conn.cursor_factory = psycopg2.extras.RealDictCursor
    return conn

def return_db_connection(conn):
    """Helper para devolver conexión al pool"""
    global db_pool
    if db_pool and conn:
        db_pool.putconn(conn)

def execute_query(query, params=(), fetchone=False, fetchall=False):
    conn = None
    try:
        conn = get_db_connection()

        with conn.cursor() as cursor:
            cursor.execute(query, params)
            if fetchone: return cursor.fetchone()
            if fetchall: return cursor.fetchall()

    except Exception as e:
        logger.error("Error lectura SQL: %s", e)
        raise
    finally:
        if conn: return_db_connection(conn)

def execute_commit_query(query, params=(), fetchone=False):
    conn = None
    try:
        conn = get_db_connection()

        with conn.cursor() as cursor:
            cursor.execute(query, params)
            result = None
            if fetchone:
                result = cursor.fetchone()
            conn.commit()

            if fetchone: return result
            return True

    except Exception as e:
        logger.error("Error escritura SQL: %s", e)
        if conn: conn.rollback()
        raise
    finally:
        if conn: return_db_connection(conn)

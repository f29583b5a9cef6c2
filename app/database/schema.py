#app/database/schema.py

import logging

logger = logging.getLogger(__name__)

def create_schema(conn):
    """
    Crea (si no existen) las tablas que usa ProTrack.
    Las políticas de seguridad por fila quedan a cargo del backend gestionado.
    """
    cursor = conn.cursor()
    logger.info("--- CREANDO/VERIFICANDO ESQUEMA PROTRACK ---")

    try:
        # gen_random_uuid() viene de pgcrypto en Postgres < 13
        cursor.execute("CREATE EXTENSION IF NOT EXISTS pgcrypto;")
    except Exception as e:
        logger.warning("No se pudo activar pgcrypto: %s", e)
        conn.rollback()

    # --- 1. EMPRESA Y SEDES ---
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS companies (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            nombre TEXT NOT NULL,
            created_at TIMESTAMPTZ DEFAULT NOW()
        );
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS warehouses (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            company_id UUID NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            nombre TEXT NOT NULL,
            capacidad_maxima INTEGER DEFAULT 0
        );
    """)

    # --- 2. PERFILES (el id es el del usuario de autenticación) ---
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS profiles (
            id UUID PRIMARY KEY,
            company_id UUID REFERENCES companies(id) ON DELETE SET NULL,
            nombre TEXT NOT NULL,
            email TEXT NOT NULL,
            telefono TEXT,
            rol TEXT NOT NULL,
            posicion TEXT,
            salario_base NUMERIC(12, 2),
            foto_url TEXT,
            created_at TIMESTAMPTZ DEFAULT NOW()
        );
    """)

    # --- 3. INVENTARIO ---
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS products (
            id TEXT PRIMARY KEY,
            nombre TEXT NOT NULL,
            ubicacion TEXT DEFAULT '',
            numero_lotes INTEGER DEFAULT 0 CHECK (numero_lotes >= 0),
            tamano_lote INTEGER DEFAULT 0 CHECK (tamano_lote >= 0),
            unidades INTEGER DEFAULT 0 CHECK (unidades >= 0),
            cantidad_disponible INTEGER DEFAULT 0 CHECK (cantidad_disponible >= 0),
            fecha_expiracion DATE,
            proveedores TEXT DEFAULT '',
            umbral_minimo INTEGER DEFAULT 0,
            umbral_maximo INTEGER DEFAULT 0,
            entrada TEXT DEFAULT '',
            precio_compra NUMERIC(12, 2) DEFAULT 0,
            total_compra NUMERIC(14, 2) DEFAULT 0,
            imagen_url TEXT,
            categoria_abc TEXT,
            codigo_barras TEXT,
            warehouse_id UUID REFERENCES warehouses(id) ON DELETE SET NULL,
            user_id UUID,
            created_at TIMESTAMPTZ DEFAULT NOW(),
            updated_at TIMESTAMPTZ DEFAULT NOW()
        );
    """)
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_products_user ON products (user_id);")

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS movements (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            product_id TEXT NOT NULL REFERENCES products(id) ON DELETE CASCADE,
            tipo_movimiento TEXT NOT NULL CHECK (tipo_movimiento IN ('Entrada', 'Salida')),
            unidades INTEGER NOT NULL CHECK (unidades > 0),
            fecha_movimiento DATE NOT NULL DEFAULT CURRENT_DATE,
            precio_venta NUMERIC(12, 2),
            ganancia NUMERIC(12, 2),
            user_id UUID,
            created_at TIMESTAMPTZ DEFAULT NOW()
        );
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS transfers (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            product_id TEXT NOT NULL REFERENCES products(id) ON DELETE CASCADE,
            sede_origen TEXT NOT NULL,
            destino TEXT NOT NULL,
            fecha DATE NOT NULL DEFAULT CURRENT_DATE,
            motivo TEXT,
            encargado TEXT,
            user_id UUID,
            created_at TIMESTAMPTZ DEFAULT NOW()
        );
    """)

    conn.commit()
    logger.info("--- ESQUEMA LISTO ---")

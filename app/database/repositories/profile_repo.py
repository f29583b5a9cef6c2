# app/database/repositories/profile_repo.py

from ..core import execute_query, execute_commit_query

_PROFILE_COLUMNS = "id, company_id, nombre, email, telefono, rol, posicion, salario_base, foto_url, created_at"

# --- PERFILES ---

def get_profile(user_id):
    """Perfil del usuario autenticado (rol y empresa), o None."""
    row = execute_query(f"SELECT {_PROFILE_COLUMNS} FROM profiles WHERE id = %s", (user_id,), fetchone=True)
    return _profile_dict(row) if row else None

def get_staff_by_company(company_id):
    """Personal de la empresa, más recientes primero."""
    rows = execute_query(
        f"SELECT {_PROFILE_COLUMNS} FROM profiles WHERE company_id = %s ORDER BY created_at DESC",
        (company_id,), fetchall=True
    ) or []
    return [_profile_dict(r) for r in rows]

def upsert_profile(profile: dict):
    """Crea o actualiza el perfil (conflicto por id del usuario de autenticación)."""
    query = f"""
        INSERT INTO profiles (id, nombre, email, telefono, rol, posicion, salario_base, company_id)
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
        ON CONFLICT (id) DO UPDATE SET
            nombre = EXCLUDED.nombre,
            email = EXCLUDED.email,
            telefono = EXCLUDED.telefono,
            rol = EXCLUDED.rol,
            posicion = EXCLUDED.posicion,
            salario_base = EXCLUDED.salario_base,
            company_id = EXCLUDED.company_id
        RETURNING {_PROFILE_COLUMNS}
    """
    params = (
        profile["id"], profile["nombre"], profile["email"], profile.get("telefono"),
        profile["rol"], profile.get("posicion"), profile.get("salario_base"),
        profile.get("company_id")
    )
    return _profile_dict(execute_commit_query(query, params, fetchone=True))

def update_profile(user_id, updates: dict):
    """Actualiza campos del perfil. Devuelve el perfil actualizado o None si no existe."""
    allowed = {"nombre", "telefono", "rol", "posicion", "salario_base"}
    set_clauses = []
    params = []
    for key, val in updates.items():
        if key in allowed:
            set_clauses.append(f"{key} = %s")
            params.append(val)

    if not set_clauses:
        return get_profile(user_id)

    params.append(user_id)
    query = f"UPDATE profiles SET {', '.join(set_clauses)} WHERE id = %s RETURNING {_PROFILE_COLUMNS}"
    row = execute_commit_query(query, tuple(params), fetchone=True)
    return _profile_dict(row) if row else None

def delete_profile(user_id):
    row = execute_commit_query("DELETE FROM profiles WHERE id = %s RETURNING id", (user_id,), fetchone=True)
    return bool(row)

# --- EMPRESA Y SEDES ---

def get_company(company_id):
    row = execute_query("SELECT id, nombre FROM companies WHERE id = %s", (company_id,), fetchone=True)
    return dict(row) if row else None

def get_warehouses(company_id):
    rows = execute_query(
        "SELECT id, nombre, capacidad_maxima FROM warehouses WHERE company_id = %s ORDER BY nombre",
        (company_id,), fetchall=True
    ) or []
    return [dict(r) for r in rows]

def _profile_dict(row):
    profile = dict(row)
    if profile.get("salario_base") is not None:
        profile["salario_base"] = float(profile["salario_base"])
    return profile

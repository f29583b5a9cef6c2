# 1. Importar la infraestructura (Core)
# Esto hace que 'app.database.init_db_pool' funcione
from .core import (
    init_db_pool,
    close_db_pool,
    execute_query,
    execute_commit_query,
    get_db_connection,
    return_db_connection
)

# 2. Importar Schema (para inicialización)
from .schema import create_schema

# 3. Importar todos los Repositorios
# Esto hace que las funciones de negocio estén disponibles
from .repositories.product_repo import *
from .repositories.movement_repo import *
from .repositories.profile_repo import *
from .repositories.auth_admin_repo import AuthAdminClient

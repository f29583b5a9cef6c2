# app/main.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from app import database as db
from app.exceptions import ProTrackBaseException
import contextlib
import logging
import os

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("--- Servidor iniciando, creando pool de conexiones... ---")
    conn = None
    try:
        db.init_db_pool()
        logger.info("--- Pool de conexiones a Base de Datos creado. ---")

        # Solo para la creación inicial del modelo de datos
        if os.environ.get("DB_CREATE_SCHEMA") == "1":
            conn = db.get_db_connection()
            db.create_schema(conn)

    except Exception as e:
        logger.exception("!!! ERROR FATAL DURANTE EL INICIO: %s", e)
        if conn:
            conn.rollback()
    finally:
        if conn:
            db.return_db_connection(conn)

    yield

    db.close_db_pool()
    logger.info("--- Servidor apagándose. ---")


app = FastAPI(
    title="ProTrack API",
    description="API backend de ProTrack: inventario, importación CSV, movimientos y personal.",
    lifespan=lifespan
)


@app.exception_handler(ProTrackBaseException)
async def protrack_exception_handler(request: Request, exc: ProTrackBaseException):
    if exc.status_code >= 500:
        logger.error("[%s] %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code, "details": exc.details},
    )


from app.api import auth, products, movements, staff, dashboard
app.include_router(auth.router, prefix="/auth", tags=["Autenticación"])
app.include_router(products.router, prefix="/products", tags=["Productos"])
app.include_router(movements.router, prefix="/movements", tags=["Movimientos y Transferencias"])
app.include_router(staff.router, prefix="/staff", tags=["Personal"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["Dashboards"])

@app.get("/")
async def read_root():
    return {"message": "Bienvenido a la API de ProTrack"}

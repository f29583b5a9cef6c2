# app/api/movements.py
from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse
from typing import List, Annotated, Optional
from app import database as db
from app import schemas, security
from app.security import TokenData
from app.exceptions import NotFoundError, ErrorCodes
from app.services import MovementService
import asyncio

router = APIRouter()
AuthDependency = Annotated[TokenData, Depends(security.get_current_user_data)]


def _csv_response(content: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )

# --- MOVIMIENTOS DE STOCK ---

@router.get("/", response_model=List[schemas.MovementResponse])
async def get_movements(auth: AuthDependency, product_id: Optional[str] = None):
    """ Movimientos de la empresa (o de un producto), más recientes primero. """
    if product_id:
        return await asyncio.to_thread(db.get_movements_by_product, product_id, auth.company_id)
    return await asyncio.to_thread(db.get_movements_by_company, auth.company_id)


@router.post("/", response_model=schemas.MovementResponse, status_code=status.HTTP_201_CREATED)
async def create_movement(movement: schemas.MovementCreate, auth: AuthDependency):
    """
    Registra una Entrada o Salida y ajusta el stock disponible del producto.
    Una salida mayor al stock lo deja en cero.
    """
    data = MovementService.prepare_movement(movement.model_dump(), auth.user_id)
    delta = MovementService.stock_delta(data["tipo_movimiento"], data["unidades"])

    created = await asyncio.to_thread(db.create_movement_with_stock, data, delta, auth.company_id)
    if created is None:
        raise NotFoundError(
            "Producto no encontrado", ErrorCodes.PRODUCT_NOT_FOUND, {"id": data["product_id"]}
        )
    return created


@router.get("/export/csv", response_class=StreamingResponse)
async def export_movements_csv(auth: AuthDependency):
    rows = await asyncio.to_thread(db.get_movements_by_company, auth.company_id)
    content = MovementService.generate_csv_content(rows, MovementService.MOVEMENT_CSV_HEADERS)
    return _csv_response(content, "movimientos.csv")

# --- TRANSFERENCIAS ENTRE SEDES ---

@router.get("/transfers", response_model=List[schemas.TransferResponse])
async def get_transfers(auth: AuthDependency, product_id: Optional[str] = None):
    if product_id:
        return await asyncio.to_thread(db.get_transfers_by_product, product_id, auth.company_id)
    return await asyncio.to_thread(db.get_transfers_by_company, auth.company_id)


@router.post("/transfers", response_model=schemas.TransferResponse, status_code=status.HTTP_201_CREATED)
async def create_transfer(transfer: schemas.TransferCreate, auth: AuthDependency):
    """ Registra una transferencia. Solo queda en el historial; no modifica el stock. """
    data = MovementService.prepare_transfer(transfer.model_dump(), auth.user_id)

    product = await asyncio.to_thread(db.get_product, data["product_id"], auth.company_id)
    if not product:
        raise NotFoundError(
            "Producto no encontrado", ErrorCodes.PRODUCT_NOT_FOUND, {"id": data["product_id"]}
        )
    return await asyncio.to_thread(db.create_transfer, data)


@router.get("/transfers/export/csv", response_class=StreamingResponse)
async def export_transfers_csv(auth: AuthDependency):
    rows = await asyncio.to_thread(db.get_transfers_by_company, auth.company_id)
    content = MovementService.generate_csv_content(rows, MovementService.TRANSFER_CSV_HEADERS)
    return _csv_response(content, "transferencias.csv")

# app/api/products.py
from fastapi import APIRouter, Depends, HTTPException, status, Query, UploadFile, File
from typing import List, Annotated, Optional
from app import database as db
from app import schemas, security
from app.security import TokenData
from app.exceptions import ValidationError, NotFoundError, ErrorCodes
from app.services import ProductService, ProductImportService, generate_template_csv
from app.services.product_filter import (
    FilterSpec, filter_products, build_filter_spec, VALID_SORT_FIELDS, SORT_ASC, SORT_DESC
)
import asyncio
import logging
from fastapi.responses import StreamingResponse

logger = logging.getLogger(__name__)

router = APIRouter()
AuthDependency = Annotated[TokenData, Depends(security.get_current_user_data)]


def get_product_store():
    """Almacén de productos; las lecturas y cambios por ID quedan limitados a la empresa."""
    return db.PostgresProductStore()

StoreDependency = Annotated[object, Depends(get_product_store)]


def get_filter_spec(
    query: Optional[str] = Query(None),
    codigo_barras: Optional[str] = Query(None),
    price_min: Optional[float] = Query(None),
    price_max: Optional[float] = Query(None),
    stock_min: Optional[float] = Query(None),
    stock_max: Optional[float] = Query(None),
    sort_by: Optional[str] = Query(None),
    sort_order: str = Query(SORT_ASC),
) -> FilterSpec:
    """ Construye el FilterSpec desde los query params, validando el orden pedido. """
    if sort_by and sort_by not in VALID_SORT_FIELDS:
        raise ValidationError(
            f"No se puede ordenar por '{sort_by}'",
            ErrorCodes.PRODUCT_INVALID_SORT,
            {"allowed_values": sorted(VALID_SORT_FIELDS)}
        )
    if sort_order not in (SORT_ASC, SORT_DESC):
        raise ValidationError(
            f"Orden inválido: '{sort_order}'",
            ErrorCodes.PRODUCT_INVALID_SORT,
            {"allowed_values": [SORT_ASC, SORT_DESC]}
        )
    return build_filter_spec(
        query=query, codigo_barras=codigo_barras,
        price_min=price_min, price_max=price_max,
        stock_min=stock_min, stock_max=stock_max,
        sort_by=sort_by, sort_order=sort_order,
    )

FilterDependency = Annotated[FilterSpec, Depends(get_filter_spec)]


async def load_filtered_products(auth: TokenData, store, spec: FilterSpec) -> List[dict]:
    products = await asyncio.to_thread(store.fetch_products, auth.company_id)
    return filter_products(products, spec)


@router.get("/", response_model=List[schemas.ProductResponse])
async def get_all_products(auth: AuthDependency, store: StoreDependency, spec: FilterDependency):
    """ Productos de la empresa del usuario, filtrados y ordenados. """
    return await load_filtered_products(auth, store, spec)


@router.post("/", response_model=schemas.ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(product: schemas.ProductCreate, auth: AuthDependency, store: StoreDependency):
    """ Crea un nuevo producto. """
    data = ProductService.prepare_product_data(product.model_dump(), auth.user_id)
    new_id = await asyncio.to_thread(store.create_product, data)
    return await asyncio.to_thread(store.get_product, new_id, auth.company_id)


# --- Plantilla y exportación (antes de /{product_id}) ---

@router.get("/template/csv", response_class=StreamingResponse)
async def download_template_csv(auth: AuthDependency):
    """ Plantilla CSV de 16 columnas con una fila de ejemplo. """
    return StreamingResponse(
        iter([generate_template_csv()]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=plantilla_productos.csv"}
    )


@router.get("/export/csv", response_class=StreamingResponse)
async def export_products_csv(auth: AuthDependency, store: StoreDependency, spec: FilterDependency):
    """
    Genera y transmite un archivo CSV de los productos filtrados.
    Usa el mismo orden de columnas que la plantilla para poder reimportarlo.
    """
    products = await load_filtered_products(auth, store, spec)
    if not products:
        raise HTTPException(status_code=404, detail="No hay datos para exportar con esos filtros.")

    content = ProductService.generate_csv_content(products)
    return StreamingResponse(
        iter([content]),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=productos.csv"}
    )


@router.post("/import/csv", response_model=schemas.ImportResult)
async def import_products_csv(
    auth: AuthDependency,
    store: StoreDependency,
    file: UploadFile = File(...)
):
    """
    Importa productos desde un archivo CSV.
    Siempre responde 200; el resultado indica éxito o el motivo del fallo.
    """
    try:
        content = await file.read()
        text = content.decode('utf-8-sig')
    except UnicodeDecodeError as e:
        logger.warning("CSV con codificación inválida: %s", e)
        return schemas.ImportResult(
            success=False, error="El archivo debe estar codificado en UTF-8"
        )

    service = ProductImportService(store)
    return await asyncio.to_thread(service.import_csv, text, auth.user_id)


@router.get("/{product_id}", response_model=schemas.ProductResponse)
async def get_product(product_id: str, auth: AuthDependency, store: StoreDependency):
    """ Obtiene un producto de la empresa por su ID. """
    product = await asyncio.to_thread(store.get_product, product_id, auth.company_id)
    if not product:
        raise NotFoundError("Producto no encontrado", ErrorCodes.PRODUCT_NOT_FOUND, {"id": product_id})
    return product


@router.put("/{product_id}", response_model=schemas.ProductResponse)
async def update_product(
    product_id: str, product: schemas.ProductUpdate, auth: AuthDependency, store: StoreDependency
):
    """ Actualiza solo los campos enviados. """
    updates = ProductService.prepare_product_update(product.model_dump(exclude_unset=True))
    found = await asyncio.to_thread(store.update_product, product_id, auth.company_id, updates)
    if not found:
        raise NotFoundError("Producto no encontrado", ErrorCodes.PRODUCT_NOT_FOUND, {"id": product_id})
    return await asyncio.to_thread(store.get_product, product_id, auth.company_id)


@router.delete("/{product_id}", status_code=status.HTTP_200_OK)
async def delete_product(product_id: str, auth: AuthDependency, store: StoreDependency):
    """ Elimina un producto de la empresa por su ID. """
    deleted = await asyncio.to_thread(store.delete_product, product_id, auth.company_id)
    if not deleted:
        raise NotFoundError("Producto no encontrado", ErrorCodes.PRODUCT_NOT_FOUND, {"id": product_id})
    return {"message": "Producto eliminado"}

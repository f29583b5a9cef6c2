# app/api/dashboard.py
from fastapi import APIRouter, Depends
from typing import Annotated
from app import database as db
from app import schemas, security
from app.security import TokenData
from app.services import low_stock
from app.api.products import StoreDependency, FilterDependency, load_filtered_products
import asyncio

router = APIRouter()
AuthDependency = Annotated[TokenData, Depends(security.get_current_user_data)]
DirectorDependency = Annotated[TokenData, Depends(security.require_director)]


@router.get("/", response_model=schemas.StaffDashboardResponse)
async def get_dashboard(auth: AuthDependency, store: StoreDependency, spec: FilterDependency):
    """ Inventario filtrable y alertas de stock bajo. """
    products = await load_filtered_products(auth, store, spec)
    return {"products": products, "low_stock": low_stock(products)}


@router.get("/director", response_model=schemas.DirectorDashboardResponse)
async def get_director_dashboard(auth: DirectorDependency, store: StoreDependency):
    """ Vista completa de la empresa: inventario, personal y sedes. """
    products, staff, warehouses, company = await asyncio.gather(
        asyncio.to_thread(store.fetch_products, auth.company_id),
        asyncio.to_thread(db.get_staff_by_company, auth.company_id),
        asyncio.to_thread(db.get_warehouses, auth.company_id),
        asyncio.to_thread(db.get_company, auth.company_id),
    )
    return {
        "company": company,
        "products": products,
        "low_stock": low_stock(products),
        "staff": staff,
        "warehouses": warehouses,
    }

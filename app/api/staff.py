# app/api/staff.py

from fastapi import APIRouter, Depends, status
from typing import List, Annotated
from app import database as db
from app import schemas, security
from app.security import TokenData
from app.services import StaffService
import asyncio

router = APIRouter()
DirectorDependency = Annotated[TokenData, Depends(security.require_director)]


def get_staff_service() -> StaffService:
    return StaffService()

StaffServiceDependency = Annotated[StaffService, Depends(get_staff_service)]


@router.get("/", response_model=List[schemas.StaffResponse])
async def get_staff(auth: DirectorDependency):
    """Personal de la empresa del Director."""
    return await asyncio.to_thread(db.get_staff_by_company, auth.company_id)


@router.post("/", response_model=schemas.StaffCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_staff(data: schemas.StaffCreate, auth: DirectorDependency, service: StaffServiceDependency):
    """
    Crea la cuenta de acceso y el perfil.
    La contraseña temporal se devuelve una sola vez para entregarla al empleado.
    """
    profile, temp_password = await asyncio.to_thread(
        service.create_staff, data.model_dump(), auth.company_id
    )
    return {"profile": profile, "temp_password": temp_password}


@router.put("/{user_id}", response_model=schemas.StaffResponse)
async def update_staff(
    user_id: str, data: schemas.StaffUpdate, auth: DirectorDependency, service: StaffServiceDependency
):
    return await asyncio.to_thread(
        service.update_staff, user_id, data.model_dump(exclude_unset=True), auth.company_id
    )


@router.delete("/{user_id}")
async def delete_staff(user_id: str, auth: DirectorDependency, service: StaffServiceDependency):
    await asyncio.to_thread(service.delete_staff, user_id, auth.company_id)
    return {"message": "Personal eliminado"}

# app/api/auth.py
from fastapi import APIRouter, Depends
from typing import Annotated
from app import security
from app.security import TokenData

router = APIRouter()

@router.get("/me", response_model=TokenData)
async def read_users_me(
    current_user_data: Annotated[TokenData, Depends(security.get_current_user_data)]
):
    """
    Endpoint protegido que devuelve la información del usuario.
    Sirve para verificar que el token se está decodificando bien.
    """
    return current_user_data

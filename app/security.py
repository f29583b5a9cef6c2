# app/security.py
import asyncio
import logging
import os
from typing import Optional
from jose import JWTError, jwt
from pydantic import BaseModel
from dotenv import load_dotenv
from app import database as db
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

load_dotenv()

logger = logging.getLogger(__name__)

# --- Configuración de Token JWT ---
# Los tokens los emite el proveedor de autenticación; aquí solo se verifican.
ALGORITHM = "HS256"
AUDIENCE = "authenticated"
DIRECTOR_ROLE = "Director General"

bearer_scheme = HTTPBearer(auto_error=False)

# Modelo Pydantic para los datos del usuario autenticado
class TokenData(BaseModel):
    user_id: str
    email: Optional[str] = None
    nombre: Optional[str] = None
    rol: Optional[str] = None
    company_id: Optional[str] = None

def get_jwt_secret() -> str:
    return os.environ.get("SUPABASE_JWT_SECRET", "")

def is_director(user: TokenData) -> bool:
    return (user.rol or "").strip() == DIRECTOR_ROLE

def decode_access_token(token: str) -> dict:
    """Verifica firma, expiración y audiencia. Lanza JWTError si no es válido."""
    return jwt.decode(token, get_jwt_secret(), algorithms=[ALGORITHM], audience=AUDIENCE)

async def get_current_user_data(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> TokenData:
    """
    Dependencia de FastAPI: Valida el token y completa rol y empresa desde el perfil.
    Esto protegerá nuestros endpoints.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No se pudieron validar las credenciales",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError as e:
        logger.info("Token rechazado: %s", e)
        raise credentials_exception

    user_id: Optional[str] = payload.get("sub")
    if user_id is None:
        raise credentials_exception

    profile = await asyncio.to_thread(db.get_profile, user_id)
    if not profile:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="El usuario no tiene un perfil asignado",
        )

    return TokenData(
        user_id=user_id,
        email=payload.get("email") or profile.get("email"),
        nombre=profile.get("nombre"),
        rol=profile.get("rol"),
        company_id=str(profile["company_id"]) if profile.get("company_id") is not None else None,
    )

async def require_director(user: TokenData = Depends(get_current_user_data)) -> TokenData:
    """Dependencia: solo el Director General."""
    if not is_director(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Solo el Director General puede realizar esta acción",
        )
    return user

# app/schemas.py
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime, date

# --- Schemas para Productos ---

class ProductRecord(BaseModel):
    """Registro canónico de inventario, listo para insertar. Inmutable."""
    id: str
    nombre: str
    ubicacion: str = ""
    numero_lotes: int = Field(0, ge=0)
    tamano_lote: int = Field(0, ge=0)
    unidades: int = Field(0, ge=0)
    cantidad_disponible: int = Field(0, ge=0)
    fecha_expiracion: str
    proveedores: str = ""
    umbral_minimo: int = Field(0, ge=0)
    umbral_maximo: int = Field(0, ge=0)
    entrada: str = ""
    precio_compra: float = Field(0.0, ge=0)
    total_compra: float = Field(0.0, ge=0)
    imagen_url: Optional[str] = None
    categoria_abc: Optional[str] = None
    warehouse_id: Optional[str] = None
    user_id: Optional[str] = None

    class Config:
        frozen = True

class ProductCreate(BaseModel):
    id: str
    nombre: str
    ubicacion: Optional[str] = ""
    numero_lotes: Optional[int] = 0
    tamano_lote: Optional[int] = 0
    unidades: Optional[int] = 0
    cantidad_disponible: Optional[int] = 0
    fecha_expiracion: Optional[str] = None
    proveedores: Optional[str] = ""
    umbral_minimo: Optional[int] = 0
    umbral_maximo: Optional[int] = 0
    entrada: Optional[str] = ""
    precio_compra: Optional[float] = 0.0
    total_compra: Optional[float] = 0.0
    imagen_url: Optional[str] = None
    categoria_abc: Optional[str] = None
    warehouse_id: Optional[str] = None

class ProductUpdate(BaseModel):
    # Todos opcionales para la actualización
    nombre: Optional[str] = None
    ubicacion: Optional[str] = None
    numero_lotes: Optional[int] = None
    tamano_lote: Optional[int] = None
    unidades: Optional[int] = None
    cantidad_disponible: Optional[int] = None
    fecha_expiracion: Optional[str] = None
    proveedores: Optional[str] = None
    umbral_minimo: Optional[int] = None
    umbral_maximo: Optional[int] = None
    entrada: Optional[str] = None
    precio_compra: Optional[float] = None
    total_compra: Optional[float] = None
    imagen_url: Optional[str] = None
    categoria_abc: Optional[str] = None
    warehouse_id: Optional[str] = None

class ProductResponse(BaseModel):
    id: str
    nombre: str
    ubicacion: Optional[str] = None
    numero_lotes: Optional[int] = None
    tamano_lote: Optional[int] = None
    unidades: Optional[int] = None
    cantidad_disponible: Optional[int] = None
    fecha_expiracion: Optional[date] = None
    proveedores: Optional[str] = None
    umbral_minimo: Optional[int] = None
    umbral_maximo: Optional[int] = None
    entrada: Optional[str] = None
    precio_compra: Optional[float] = None
    total_compra: Optional[float] = None
    imagen_url: Optional[str] = None
    categoria_abc: Optional[str] = None
    codigo_barras: Optional[str] = None
    warehouse_id: Optional[str] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# --- Schemas para Importación CSV ---

class ImportData(BaseModel):
    imported: int
    duplicates: List[str]
    warnings: Optional[List[str]] = None
    errors: Optional[List[str]] = None
    message: str

class ImportResult(BaseModel):
    success: bool
    data: Optional[ImportData] = None
    error: Optional[str] = None

# --- Schemas para Movimientos y Transferencias ---

class MovementCreate(BaseModel):
    product_id: str
    tipo_movimiento: str = "Entrada"
    unidades: int
    fecha_movimiento: Optional[date] = None
    precio_venta: Optional[float] = None
    ganancia: Optional[float] = None

class MovementResponse(BaseModel):
    id: str
    product_id: str
    tipo_movimiento: str
    unidades: int
    fecha_movimiento: date
    precio_venta: Optional[float] = None
    ganancia: Optional[float] = None
    user_id: Optional[str] = None
    cantidad_disponible: Optional[int] = None # Stock resultante del producto

    class Config:
        from_attributes = True

class TransferCreate(BaseModel):
    product_id: str
    sede_origen: str
    destino: str
    fecha: Optional[date] = None
    motivo: Optional[str] = ""
    encargado: Optional[str] = ""

class TransferResponse(BaseModel):
    id: str
    product_id: str
    sede_origen: str
    destino: str
    fecha: date
    motivo: Optional[str] = None
    encargado: Optional[str] = None
    user_id: Optional[str] = None

    class Config:
        from_attributes = True

# --- Schemas para Personal (Staff) ---

class StaffBase(BaseModel):
    nombre: str
    telefono: Optional[str] = None
    rol: str
    posicion: Optional[str] = None
    salario_base: Optional[float] = None

class StaffCreate(StaffBase):
    email: str

class StaffUpdate(BaseModel):
    nombre: Optional[str] = None
    telefono: Optional[str] = None
    rol: Optional[str] = None
    posicion: Optional[str] = None
    salario_base: Optional[float] = None

class StaffResponse(StaffBase):
    id: str
    email: str
    company_id: Optional[str] = None
    foto_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class StaffCreatedResponse(BaseModel):
    profile: StaffResponse
    temp_password: str

# --- Schemas para Empresa / Sedes ---

class CompanyResponse(BaseModel):
    id: str
    nombre: str

    class Config:
        from_attributes = True

class WarehouseResponse(BaseModel):
    id: str
    nombre: str
    capacidad_maxima: Optional[int] = None

    class Config:
        from_attributes = True

# --- Schemas para Dashboards ---

class StaffDashboardResponse(BaseModel):
    products: List[ProductResponse]
    low_stock: List[ProductResponse]

class DirectorDashboardResponse(StaffDashboardResponse):
    company: Optional[CompanyResponse] = None
    staff: List[StaffResponse]
    warehouses: List[WarehouseResponse]

"""Domain models for products and stock movements."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class Product(BaseModel):
    """Product as stored and returned to API callers."""
    model_config = ConfigDict(extra="ignore")

    id: str
    nombre: str
    precio: float
    categoria: str = ""
    stock: int = 0
    descripcion: str = ""
    activo: bool = True
    fechaCreacion: Optional[datetime] = None
    fechaActualizacion: Optional[datetime] = None
    fechaEliminacion: Optional[datetime] = None


class ProductCreate(BaseModel):
    """Body of ``POST /api/productos``."""
    nombre: Optional[str] = None
    precio: Optional[float] = None
    categoria: Optional[str] = None
    stock: Optional[int] = None
    descripcion: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "nombre": "Mouse",
                "precio": 25,
                "categoria": "Perifericos",
                "stock": 5,
                "descripcion": "Mouse óptico USB"
            }
        }


class ProductUpdate(BaseModel):
    """Partial update of a product."""
    nombre: Optional[str] = None
    precio: Optional[float] = None
    categoria: Optional[str] = None
    stock: Optional[int] = None
    descripcion: Optional[str] = None


class StockUpdate(BaseModel):
    """Body of ``PUT /api/productos/{id}/stock``."""
    stock: int


class StockReduction(BaseModel):
    """Body of ``PUT /api/productos/{id}/reducir-stock``."""
    cantidad: int = 1

"""Domain models for users and authentication."""
from datetime import datetime
from typing import Annotated, Optional
from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, Field


def check_email(value: Optional[str]) -> Optional[str]:
    """Validate the address format but keep the submitted spelling.

    Emails are exact-match lookup keys, so the normalised form the validator
    computes (lower-cased domain) is discarded.
    """
    if value is None:
        return None
    value = value.strip()
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(f"email inválido: {e}")
    return value


Email = Annotated[str, AfterValidator(check_email)]


class User(BaseModel):
    """User as returned to API callers.

    The stored ``password`` hash is never part of this model.
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    email: str
    nombre: str
    edad: int = 0
    categoria: str = ""
    descripcion: str = ""
    activo: bool = True
    fechaCreacion: Optional[datetime] = None
    fechaActualizacion: Optional[datetime] = None
    fechaEliminacion: Optional[datetime] = None


class UserCreate(BaseModel):
    """Body of ``POST /api/usuarios`` and ``POST /api/auth/register``.

    Required-field checks live in the service so they can report every
    missing field in one Spanish message.
    """
    nombre: Optional[str] = None
    email: Optional[Email] = None
    password: Optional[str] = None
    categoria: Optional[str] = None
    edad: Optional[int] = None
    descripcion: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "nombre": "Ana Pérez",
                "email": "ana@example.com",
                "password": "s3cret-pass",
                "categoria": "cliente",
                "edad": 31,
                "descripcion": "Compradora frecuente"
            }
        }


class UserUpdate(BaseModel):
    """Partial update; email is not editable."""
    nombre: Optional[str] = None
    password: Optional[str] = None
    categoria: Optional[str] = None
    edad: Optional[int] = None
    descripcion: Optional[str] = None


class TokenClaims(BaseModel):
    """Identity carried by a verified access token."""
    id: str
    email: str
    exp: Optional[datetime] = None
    iat: Optional[datetime] = None


class LoginRequest(BaseModel):
    """Login credentials request."""
    email: Email
    password: str = Field(min_length=1)

    class Config:
        json_schema_extra = {
            "example": {
                "email": "ana@example.com",
                "password": "s3cret-pass"
            }
        }


class LoginUser(BaseModel):
    id: str
    email: str


class LoginResponse(BaseModel):
    """Successful login: signed token plus minimal identity."""
    message: str = "Login successful"
    token: str
    user: LoginUser

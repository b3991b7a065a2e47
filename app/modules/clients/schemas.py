"""
Esquemas Pydantic para el módulo de Clientes

Los formularios envían cadenas vacías para los campos opcionales; acá se
normalizan a null antes de llegar a la API. El DNI/CUIT se valida como
documento argentino.
"""

from pydantic import BaseModel, field_validator
from typing import List, Optional

from app.common.validators import validate_dni_cuit, format_dni_cuit
from app.modules.backend import schemas as backend


OPTIONAL_FIELDS = ('dni_cuit', 'email', 'telefono', 'direccion', 'ciudad', 'tipo_iva')


def _blank_to_none(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


def _check_dni_cuit(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    if not validate_dni_cuit(v):
        raise ValueError(
            'DNI/CUIT inválido. Use DNI de 7 u 8 dígitos o CUIT XX-XXXXXXXX-X'
        )
    return format_dni_cuit(v)


class ClientCreate(backend.ClientCreate):

    @field_validator('nombre')
    @classmethod
    def validate_nombre(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El nombre es obligatorio')
        return v

    @field_validator(*OPTIONAL_FIELDS, mode='before')
    @classmethod
    def blank_to_none(cls, v):
        return _blank_to_none(v)

    @field_validator('dni_cuit')
    @classmethod
    def validate_dni_cuit(cls, v):
        return _check_dni_cuit(v)


class ClientUpdate(backend.ClientUpdate):

    @field_validator('nombre')
    @classmethod
    def validate_nombre(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError('El nombre no puede estar vacío')
        return v

    @field_validator(*OPTIONAL_FIELDS, mode='before')
    @classmethod
    def blank_to_none(cls, v):
        return _blank_to_none(v)

    @field_validator('dni_cuit')
    @classmethod
    def validate_dni_cuit(cls, v):
        return _check_dni_cuit(v)


class ClientOut(backend.Client):
    direccion_completa: Optional[str] = None


class ClientList(BaseModel):
    clientes: List[ClientOut]
    total: int

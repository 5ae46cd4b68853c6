from typing import Optional, List
import datetime as dt
from decimal import Decimal
from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalizar_tipo(tipo):
    """Código de tipo tal como se guarda: sin espacios y en mayúsculas"""
    if isinstance(tipo, str):
        return tipo.strip().upper()
    return tipo


def _vacio_a_none(v):
    # El frontend envía "" para los campos opcionales sin llenar
    if isinstance(v, str) and not v.strip():
        return None
    return v


class ItemRequestSchema(BaseModel):
    product_id: Optional[int] = Field(None, description="Producto de origen (referencia no forzada)")
    name: str = Field(..., min_length=1, description="Nombre del ítem")
    description: Optional[str] = Field("", description="Detalle del ítem")
    quantity: int = Field(..., description="Cantidad (puede ser 0)")
    price: Decimal = Field(..., description="Precio unitario neto; negativo para descuentos")

    @field_validator('product_id', mode='before')
    @classmethod
    def limpiar_producto(cls, v):
        return _vacio_a_none(v)


class DocumentoRequestSchema(BaseModel):
    type: str = Field(..., min_length=1, max_length=20, description="Tipo: INV, QUO, DN, PO, CN...")
    company_id: int = Field(..., gt=0)
    date: Optional[dt.date] = Field(None, description="Fecha de emisión (por defecto hoy)")
    expiration_date: Optional[dt.date] = None
    items: Optional[List[ItemRequestSchema]] = None

    notes: Optional[str] = None
    payment_terms: Optional[str] = None
    delivery_time: Optional[str] = None
    warranty: Optional[str] = None
    reference: Optional[str] = ""
    parent_id: Optional[int] = None
    status: Optional[str] = None

    # Guía de despacho
    driver: Optional[str] = ""
    plate: Optional[str] = ""
    dispatch_type: Optional[str] = ""

    file_url: Optional[str] = ""

    # Solo para documentos importados sin detalle de ítems
    folio: Optional[int] = Field(None, gt=0, description="Folio oficial ya asignado")
    total: Optional[Decimal] = Field(None, ge=0, description="Total manual si no hay ítems")

    @field_validator('date', 'expiration_date', 'parent_id', 'folio', 'total', 'status', mode='before')
    @classmethod
    def limpiar_opcionales(cls, v):
        return _vacio_a_none(v)

    @field_validator('type', mode='before')
    @classmethod
    def limpiar_tipo(cls, v):
        return normalizar_tipo(v)


class ItemSchema(BaseModel):
    id: int
    document_id: int
    product_id: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    quantity: int
    price: Decimal
    total: Decimal

    model_config = ConfigDict(from_attributes=True)


class DocumentoSchema(BaseModel):
    id: int
    type: str
    folio: int
    company_id: int
    date: Optional[dt.date] = None
    expiration_date: Optional[dt.date] = None
    status: str
    neto: Decimal
    tax: Decimal
    total: Decimal
    notes: Optional[str] = None
    payment_terms: Optional[str] = None
    delivery_time: Optional[str] = None
    warranty: Optional[str] = None
    reference: Optional[str] = None
    parent_id: Optional[int] = None
    driver: Optional[str] = None
    plate: Optional[str] = None
    dispatch_type: Optional[str] = None
    file_url: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class DocumentoVistaSchema(DocumentoSchema):
    """Documento con los datos tributarios de la empresa y sus ítems"""
    company_name: Optional[str] = None
    company_rut: Optional[str] = None
    company_giro: Optional[str] = None
    company_address: Optional[str] = None
    company_city: Optional[str] = None
    items: List[ItemSchema] = []


class DocumentoCreadoSchema(BaseModel):
    message: str
    document: DocumentoSchema


class EstadoUpdateSchema(BaseModel):
    status: str = Field(..., min_length=1, max_length=50)


class SiguienteFolioSchema(BaseModel):
    type: str
    next_folio: int


class MensajeSchema(BaseModel):
    message: str

"""
Lectura de documentos junto a los datos tributarios de la empresa
"""
from typing import List, Optional

from sqlalchemy import String, cast, or_
from sqlalchemy.orm import Session, selectinload

from erp_documentos.core.exceptions import NotFoundError
from erp_documentos.database.models import Company, Document
from erp_documentos.schemas.documento import (
    DocumentoSchema, DocumentoVistaSchema, ItemSchema, normalizar_tipo
)
from erp_documentos.utils.logger import setup_logger

logger = setup_logger(__name__)


class ConsultaService:

    def __init__(self, db: Session):
        self.db = db

    def _consulta_base(self):
        return (
            self.db.query(
                Document,
                Company.name.label("company_name"),
                Company.rut.label("company_rut"),
                Company.giro.label("company_giro"),
                Company.address.label("company_address"),
                Company.city.label("company_city"),
            )
            .join(Company, Document.company_id == Company.id)
            .options(selectinload(Document.items))
        )

    @staticmethod
    def _a_vista(fila) -> DocumentoVistaSchema:
        documento = fila[0]
        datos = DocumentoSchema.model_validate(documento).model_dump()
        datos.update(
            company_name=fila.company_name,
            company_rut=fila.company_rut,
            company_giro=fila.company_giro,
            company_address=fila.company_address,
            company_city=fila.company_city,
            items=[ItemSchema.model_validate(item) for item in documento.items],
        )
        return DocumentoVistaSchema.model_validate(datos)

    def listar_documentos(self, tipo: Optional[str] = None, search: Optional[str] = None) -> List[DocumentoVistaSchema]:
        """
        Lista documentos del más reciente al más antiguo (por id).

        Args:
            tipo: filtra por tipo exacto (se normaliza igual que al emitir)
            search: texto parcial, sin distinguir mayúsculas, en nombre de
                empresa, folio o referencia
        """
        query = self._consulta_base()

        if tipo:
            query = query.filter(Document.type == normalizar_tipo(tipo))
        if search:
            patron = f"%{search}%"
            query = query.filter(or_(
                Company.name.ilike(patron),
                cast(Document.folio, String).ilike(patron),
                Document.reference.ilike(patron),
            ))

        filas = query.order_by(Document.id.desc()).all()
        return [self._a_vista(fila) for fila in filas]

    def obtener_documento(self, documento_id: int) -> DocumentoVistaSchema:
        fila = self._consulta_base().filter(Document.id == documento_id).first()
        if fila is None:
            raise NotFoundError(f"Documento {documento_id} no encontrado")
        return self._a_vista(fila)

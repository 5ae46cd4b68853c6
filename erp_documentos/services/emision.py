"""
Emisión de documentos comerciales (cotizaciones, facturas, guías de despacho)
"""
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from erp_documentos.core.exceptions import (
    DocumentoError, FolioDuplicadoError, NotFoundError, PersistenceError, ValidationError
)
from erp_documentos.core.totales import Totales, calcular_totales, total_item
from erp_documentos.database.models import Company, Document, DocumentItem
from erp_documentos.schemas.documento import DocumentoRequestSchema, ItemRequestSchema
from erp_documentos.services.folios import FolioService
from erp_documentos.utils.logger import setup_logger

logger = setup_logger(__name__)

ESTADO_INICIAL = "Emitida"


def _es_folio_duplicado(error: IntegrityError) -> bool:
    # PostgreSQL nombra la restricción; SQLite lista las columnas
    mensaje = str(error.orig)
    return (
        "uq_documents_type_folio" in mensaje
        or "documents.type, documents.folio" in mensaje
    )


class EmisionService:
    """Escritura de documentos: creación, cambio de estado y eliminación"""

    def __init__(self, db: Session, folios: FolioService = None):
        self.db = db
        self.folios = folios or FolioService(db)

    def crear_documento(self, data: DocumentoRequestSchema) -> Document:
        """
        Crea el encabezado y sus ítems en una sola transacción.

        Con ítems, los totales se calculan y el ``total`` recibido se ignora.
        Sin ítems, se guarda el ``total`` recibido y neto/IVA quedan en cero.

        Raises:
            ValidationError: faltan datos o la empresa no existe
            FolioDuplicadoError: el folio manual ya existe para el tipo
            PersistenceError: falla de base de datos (todo revertido)
        """
        if not data.type or not data.company_id:
            raise ValidationError("Faltan datos: type y company_id son obligatorios")

        try:
            if self.db.get(Company, data.company_id) is None:
                raise ValidationError(f"La empresa {data.company_id} no existe")

            folio = self._resolver_folio(data)
            items = data.items or []

            if items:
                totales = calcular_totales(items)
            else:
                totales = Totales(total=data.total or 0)

            documento = Document(
                type=data.type,
                folio=folio,
                company_id=data.company_id,
                date=data.date or date.today(),
                expiration_date=data.expiration_date,
                status=data.status or ESTADO_INICIAL,
                neto=totales.neto,
                tax=totales.tax,
                total=totales.total,
                notes=data.notes,
                payment_terms=data.payment_terms,
                delivery_time=data.delivery_time,
                warranty=data.warranty,
                reference=data.reference or "",
                parent_id=data.parent_id,
                driver=data.driver or "",
                plate=data.plate or "",
                dispatch_type=data.dispatch_type or "",
                file_url=data.file_url or "",
            )
            self.db.add(documento)
            self.db.flush()

            for item in items:
                self.db.add(self._construir_item(documento.id, item))
            self.db.flush()

            self.db.commit()
            self.db.refresh(documento)

        except DocumentoError as e:
            self.db.rollback()
            logger.warning(f"Documento {data.type} rechazado: {e}")
            raise
        except IntegrityError as e:
            self.db.rollback()
            if _es_folio_duplicado(e):
                logger.warning(f"Folio {data.type} N° {data.folio} ya registrado por otra emisión")
                raise FolioDuplicadoError(
                    f"Ya existe un documento {data.type} con folio {data.folio}"
                ) from e
            logger.error(f"Error creando documento {data.type}: {str(e)}")
            raise PersistenceError(str(e)) from e
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creando documento {data.type}: {str(e)}")
            raise PersistenceError(str(e)) from e

        logger.info(
            f"Documento {documento.type} N° {documento.folio} creado (id={documento.id}, "
            f"items={len(items)}, total={documento.total})"
        )
        return documento

    def _resolver_folio(self, data: DocumentoRequestSchema) -> int:
        if not data.folio:
            return self.folios.siguiente_folio(data.type)

        # Folio oficial de un documento importado
        if self._folio_registrado(data.type, data.folio):
            raise FolioDuplicadoError(f"Ya existe un documento {data.type} con folio {data.folio}")
        self.folios.registrar_folio(data.type, data.folio)
        return data.folio

    def _folio_registrado(self, tipo: str, folio: int) -> bool:
        # Sin bloqueo: una importación concurrente la detecta el índice único
        return self.db.query(Document.id).filter(
            Document.type == tipo, Document.folio == folio
        ).first() is not None

    def _construir_item(self, documento_id: int, item: ItemRequestSchema) -> DocumentItem:
        return DocumentItem(
            document_id=documento_id,
            product_id=item.product_id,
            name=item.name,
            description=item.description or "",
            quantity=item.quantity,
            price=item.price,
            total=total_item(item.quantity, item.price),
        )

    def actualizar_estado(self, documento_id: int, status: str) -> Document:
        documento = self.db.get(Document, documento_id)
        if documento is None:
            raise NotFoundError(f"Documento {documento_id} no encontrado")

        try:
            documento.status = status
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error actualizando estado del documento {documento_id}: {str(e)}")
            raise PersistenceError(str(e)) from e

        logger.info(f"Documento {documento_id} cambió a estado '{status}'")
        return documento

    def eliminar_documento(self, documento_id: int) -> None:
        """Elimina el documento y, en cascada, sus ítems. El folio no se reutiliza."""
        documento = self.db.get(Document, documento_id)
        if documento is None:
            raise NotFoundError(f"Documento {documento_id} no encontrado")

        try:
            self.db.delete(documento)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error eliminando documento {documento_id}: {str(e)}")
            raise PersistenceError(str(e)) from e

        logger.info(f"Documento {documento_id} eliminado")

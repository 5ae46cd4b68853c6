from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session
from typing import List, Optional

from erp_documentos.core.exceptions import (
    FolioDuplicadoError, NotFoundError, PersistenceError, ValidationError
)
from erp_documentos.database.database import get_db
from erp_documentos.schemas.documento import (
    DocumentoRequestSchema,
    DocumentoCreadoSchema,
    DocumentoSchema,
    DocumentoVistaSchema,
    EstadoUpdateSchema,
    MensajeSchema,
    SiguienteFolioSchema,
    normalizar_tipo,
)
from erp_documentos.services.consulta import ConsultaService
from erp_documentos.services.emision import EmisionService
from erp_documentos.services.folios import FolioService
from erp_documentos.services.impresion import ImpresionService
from erp_documentos.utils.logger import setup_logger

logger = setup_logger(__name__)

router = APIRouter(prefix="/api/documents", tags=["documents"])


@router.post("", response_model=DocumentoCreadoSchema, status_code=status.HTTP_201_CREATED)
def crear_documento(documento_data: DocumentoRequestSchema, db: Session = Depends(get_db)):
    try:
        documento = EmisionService(db).crear_documento(documento_data)
        return DocumentoCreadoSchema(
            message="Documento creado exitosamente",
            document=DocumentoSchema.model_validate(documento)
        )

    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except FolioDuplicadoError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error al crear documento: {str(e)}"
        )


@router.get("", response_model=List[DocumentoVistaSchema])
def listar_documentos(type: Optional[str] = None, search: Optional[str] = None, db: Session = Depends(get_db)):
    try:
        return ConsultaService(db).listar_documentos(tipo=type, search=search)

    except Exception as e:
        logger.error(f"Error al listar documentos: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error al listar documentos: {str(e)}"
        )


@router.get("/next-folio/{tipo}", response_model=SiguienteFolioSchema)
def obtener_siguiente_folio(tipo: str, db: Session = Depends(get_db)):
    tipo = normalizar_tipo(tipo)
    try:
        return SiguienteFolioSchema(type=tipo, next_folio=FolioService(db).consultar_siguiente(tipo))

    except Exception as e:
        logger.error(f"Error consultando siguiente folio de {tipo}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{documento_id}", response_model=DocumentoVistaSchema)
def obtener_documento(documento_id: int, db: Session = Depends(get_db)):
    try:
        return ConsultaService(db).obtener_documento(documento_id)

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Error al obtener documento: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error al obtener documento: {str(e)}"
        )


@router.get("/{documento_id}/pdf")
def ver_documento_pdf(documento_id: int, db: Session = Depends(get_db)):
    try:
        contenido = ImpresionService(db).renderizar(documento_id)
        return Response(
            content=contenido,
            media_type="application/pdf",
            headers={"Content-Disposition": f'inline; filename="documento_{documento_id}.pdf"'}
        )

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        logger.error(f"Error generando PDF: {e}")
        raise HTTPException(status_code=500, detail=f"Error generando PDF: {str(e)}")


@router.put("/{documento_id}/status", response_model=MensajeSchema)
def actualizar_estado(documento_id: int, estado: EstadoUpdateSchema, db: Session = Depends(get_db)):
    try:
        EmisionService(db).actualizar_estado(documento_id, estado.status)
        return MensajeSchema(message="Estado actualizado")

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/{documento_id}", response_model=MensajeSchema)
def eliminar_documento(documento_id: int, db: Session = Depends(get_db)):
    try:
        EmisionService(db).eliminar_documento(documento_id)
        return MensajeSchema(message="Documento eliminado correctamente")

    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=f"Error al eliminar documento: {str(e)}")

from sqlalchemy.orm import Session

from erp_documentos.config import Config
from erp_documentos.services.consulta import ConsultaService
from erp_documentos.utils.pdf_generator import DocumentoPDF


class ImpresionService:
    """Representación impresa de un documento (solo lectura)"""

    def __init__(self, db: Session, generador: DocumentoPDF = None):
        self.consulta = ConsultaService(db)
        self.generador = generador or DocumentoPDF(Config.EMPRESA)

    def renderizar(self, documento_id: int) -> bytes:
        # NotFoundError sale de la consulta antes de generar nada
        documento = self.consulta.obtener_documento(documento_id)
        return self.generador.generar_pdf(documento)

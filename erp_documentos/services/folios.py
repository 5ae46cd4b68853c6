"""
Asignación de folios por tipo de documento
"""
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from erp_documentos.config import Config
from erp_documentos.database.models import Document, FolioSequence
from erp_documentos.utils.logger import setup_logger

logger = setup_logger(__name__)


class FolioService:
    """
    Mantiene un contador explícito por tipo de documento en ``folio_sequences``.

    La fila del tipo se bloquea (SELECT ... FOR UPDATE) durante la transacción
    del llamador, de modo que dos emisiones concurrentes del mismo tipo se
    serializan en lugar de calcular el mismo folio. El commit o rollback
    pertenece a quien llama.
    """

    def __init__(self, db: Session, minimos=None):
        self.db = db
        self.minimos = Config.FOLIOS_MINIMOS if minimos is None else minimos

    def minimo(self, tipo: str) -> int:
        return self.minimos.get(tipo, 1)

    def _max_folio(self, tipo: str) -> int:
        return self.db.query(func.coalesce(func.max(Document.folio), 0)).filter(
            Document.type == tipo
        ).scalar()

    def _secuencia_bloqueada(self, tipo: str) -> FolioSequence:
        secuencia = self.db.query(FolioSequence).filter(
            FolioSequence.type == tipo
        ).with_for_update().first()
        if secuencia is not None:
            return secuencia

        # Primera emisión del tipo: se parte desde los folios ya guardados
        try:
            with self.db.begin_nested():
                secuencia = FolioSequence(type=tipo, last_folio=self._max_folio(tipo))
                self.db.add(secuencia)
            logger.info(f"Secuencia de folios creada para {tipo} desde {secuencia.last_folio}")
        except IntegrityError:
            # Otra transacción creó la fila primero
            secuencia = self.db.query(FolioSequence).filter(
                FolioSequence.type == tipo
            ).with_for_update().one()
        return secuencia

    def siguiente_folio(self, tipo: str) -> int:
        """
        Reserva el siguiente folio del tipo: max(último + 1, mínimo configurado).
        """
        secuencia = self._secuencia_bloqueada(tipo)
        folio = max(secuencia.last_folio + 1, self.minimo(tipo))
        secuencia.last_folio = folio
        self.db.flush()
        return folio

    def registrar_folio(self, tipo: str, folio: int) -> None:
        """Sube el contador si se usó un folio manual mayor al último"""
        secuencia = self._secuencia_bloqueada(tipo)
        if folio > secuencia.last_folio:
            secuencia.last_folio = folio
            self.db.flush()

    def consultar_siguiente(self, tipo: str) -> int:
        """Folio que recibiría el próximo documento, sin reservarlo"""
        secuencia = self.db.get(FolioSequence, tipo)
        ultimo = secuencia.last_folio if secuencia is not None else self._max_folio(tipo)
        return max(ultimo + 1, self.minimo(tipo))

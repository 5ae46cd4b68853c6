"""
Tests para la emisión de documentos (encabezado + ítems en una transacción)
"""

import unittest
from unittest import mock
from datetime import date
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError

from erp_documentos.core.exceptions import (
    FolioDuplicadoError, NotFoundError, PersistenceError, ValidationError
)
from erp_documentos.database.models import Document, DocumentItem
from erp_documentos.schemas.documento import DocumentoRequestSchema
from erp_documentos.services.emision import EmisionService
from erp_documentos.services.folios import FolioService

from db_pruebas import crear_empresa, crear_sesion_pruebas


class TestEmisionService(unittest.TestCase):
    """Pruebas del servicio de emisión"""

    def setUp(self):
        self.engine, SessionLocal = crear_sesion_pruebas()
        self.db = SessionLocal()
        self.empresa = crear_empresa(self.db)
        self.servicio = EmisionService(self.db, FolioService(self.db, minimos={"INV": 6060}))

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def _solicitud(self, **datos):
        valores = {
            "type": "INV",
            "company_id": self.empresa.id,
            "date": "2026-10-01",
            "items": [
                {"product_id": 3, "name": "Filtro", "quantity": 2, "price": 1000},
                {"name": "Manguera", "description": "3/4 pulgada", "quantity": 1, "price": 500},
            ],
        }
        valores.update(datos)
        return DocumentoRequestSchema(**valores)

    def _contar(self):
        return self.db.query(Document).count(), self.db.query(DocumentItem).count()

    def test_crear_factura_con_items(self):
        """Escenario: neto 2500, IVA 475, total 2975, folio 6060"""
        documento = self.servicio.crear_documento(self._solicitud())

        self.assertEqual(documento.folio, 6060)
        self.assertEqual(documento.neto, Decimal("2500"))
        self.assertEqual(documento.tax, Decimal("475"))
        self.assertEqual(documento.total, Decimal("2975"))
        self.assertEqual(documento.status, "Emitida")
        self.assertEqual(documento.date, date(2026, 10, 1))

        items = self.db.query(DocumentItem).filter(DocumentItem.document_id == documento.id).all()
        self.assertEqual(len(items), 2)
        self.assertEqual([i.total for i in items], [Decimal("2000"), Decimal("500")])
        self.assertEqual(items[0].product_id, 3)
        self.assertEqual(items[1].description, "3/4 pulgada")

    def test_total_manual_ignorado_con_items(self):
        """Con ítems, el total recibido no se usa"""
        documento = self.servicio.crear_documento(self._solicitud(total=1))
        self.assertEqual(documento.total, Decimal("2975"))

    def test_documento_sin_items_usa_total_manual(self):
        """Documento importado: total tal cual, neto e IVA en cero"""
        documento = self.servicio.crear_documento(self._solicitud(items=[], total=119000))

        self.assertEqual(documento.neto, Decimal("0"))
        self.assertEqual(documento.tax, Decimal("0"))
        self.assertEqual(documento.total, Decimal("119000"))
        self.assertEqual(self._contar(), (1, 0))

    def test_documento_sin_items_ni_total(self):
        documento = self.servicio.crear_documento(self._solicitud(items=None))
        self.assertEqual(documento.total, Decimal("0"))

    def test_valores_por_defecto(self):
        """Fecha de hoy y campos de despacho vacíos"""
        documento = self.servicio.crear_documento(self._solicitud(date=None))

        self.assertEqual(documento.date, date.today())
        self.assertEqual(documento.reference, "")
        self.assertEqual(documento.driver, "")
        self.assertIsNone(documento.parent_id)

    def test_folios_sucesivos(self):
        folios = [self.servicio.crear_documento(self._solicitud()).folio for _ in range(3)]
        self.assertEqual(folios, [6060, 6061, 6062])

    def test_folio_manual(self):
        """El folio recibido se usa tal cual y los automáticos siguen por encima"""
        manual = self.servicio.crear_documento(self._solicitud(folio=9000, items=[], total=5000))
        automatico = self.servicio.crear_documento(self._solicitud())

        self.assertEqual(manual.folio, 9000)
        self.assertEqual(automatico.folio, 9001)

    def test_folio_manual_duplicado(self):
        """Un folio manual repetido para el mismo tipo se rechaza sin escribir nada"""
        self.servicio.crear_documento(self._solicitud(folio=500))

        with self.assertRaises(FolioDuplicadoError):
            self.servicio.crear_documento(self._solicitud(folio=500))
        self.assertEqual(self._contar(), (1, 2))

    def test_mismo_folio_en_otro_tipo(self):
        """La unicidad del folio es por tipo"""
        self.servicio.crear_documento(self._solicitud(folio=500))
        otro = self.servicio.crear_documento(self._solicitud(type="QUO", folio=500))
        self.assertEqual(otro.folio, 500)

    def test_folio_manual_duplicado_concurrente(self):
        """Si otra importación guardó el folio entre la verificación y el insert, el índice único lo rechaza"""
        self.servicio.crear_documento(self._solicitud(folio=500))

        with mock.patch.object(self.servicio, "_folio_registrado", return_value=False):
            with self.assertRaises(FolioDuplicadoError):
                self.servicio.crear_documento(self._solicitud(folio=500))
        self.assertEqual(self._contar(), (1, 2))

    def test_items_con_descuento_y_cantidad_cero(self):
        """Una línea de descuento con precio negativo resta del neto"""
        documento = self.servicio.crear_documento(self._solicitud(items=[
            {"name": "Compresor", "quantity": 1, "price": 10000},
            {"name": "Descuento cliente frecuente", "quantity": 1, "price": -1500},
            {"name": "Flete (sin cargo)", "quantity": 0, "price": 3000},
        ]))

        self.assertEqual(documento.neto, Decimal("8500"))
        self.assertEqual(documento.tax, Decimal("1615"))
        self.assertEqual(documento.total, Decimal("10115"))
        items = self.db.query(DocumentItem).filter(DocumentItem.document_id == documento.id).all()
        self.assertEqual([i.total for i in items], [Decimal("10000"), Decimal("-1500"), Decimal("0")])

    def test_empresa_inexistente(self):
        with self.assertRaises(ValidationError):
            self.servicio.crear_documento(self._solicitud(company_id=999))
        self.assertEqual(self._contar(), (0, 0))

    def test_falla_en_item_revierte_todo(self):
        """Si falla el segundo ítem no queda encabezado ni ítems"""
        original = self.servicio._construir_item
        llamadas = []

        def falla_en_segundo(documento_id, item):
            llamadas.append(item)
            if len(llamadas) == 2:
                raise SQLAlchemyError("insert document_items falló")
            return original(documento_id, item)

        with mock.patch.object(self.servicio, "_construir_item", side_effect=falla_en_segundo):
            with self.assertRaises(PersistenceError) as ctx:
                self.servicio.crear_documento(self._solicitud())

        self.assertIn("insert document_items falló", str(ctx.exception))
        self.assertEqual(self._contar(), (0, 0))
        # El folio reservado también se revirtió
        self.assertEqual(self.servicio.crear_documento(self._solicitud()).folio, 6060)

    def test_actualizar_estado(self):
        documento = self.servicio.crear_documento(self._solicitud())
        self.servicio.actualizar_estado(documento.id, "Pagada")

        self.db.expire_all()
        actualizado = self.db.get(Document, documento.id)
        self.assertEqual(actualizado.status, "Pagada")
        self.assertEqual(actualizado.folio, 6060)
        self.assertEqual(actualizado.total, Decimal("2975"))

    def test_actualizar_estado_inexistente(self):
        with self.assertRaises(NotFoundError):
            self.servicio.actualizar_estado(99999, "Pagada")

    def test_eliminar_en_cascada(self):
        """Eliminar el documento borra sus ítems"""
        documento = self.servicio.crear_documento(self._solicitud())
        documento_id = documento.id

        self.servicio.eliminar_documento(documento_id)

        self.assertIsNone(self.db.get(Document, documento_id))
        items = self.db.query(DocumentItem).filter(DocumentItem.document_id == documento_id).all()
        self.assertEqual(items, [])

    def test_folio_no_se_reutiliza_tras_eliminar(self):
        primero = self.servicio.crear_documento(self._solicitud())
        self.servicio.eliminar_documento(primero.id)

        segundo = self.servicio.crear_documento(self._solicitud())
        self.assertEqual(segundo.folio, 6061)

    def test_eliminar_inexistente(self):
        with self.assertRaises(NotFoundError):
            self.servicio.eliminar_documento(99999)


if __name__ == '__main__':
    unittest.main()

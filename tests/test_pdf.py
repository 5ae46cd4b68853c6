"""
Tests para la representación impresa de documentos
"""

import unittest
from unittest import mock
from datetime import date
from decimal import Decimal

from erp_documentos.core.exceptions import NotFoundError
from erp_documentos.services.impresion import ImpresionService
from erp_documentos.utils.formato import formatear_clp, formatear_fecha
from erp_documentos.utils.pdf_generator import DocumentoPDF

from db_pruebas import crear_empresa, crear_sesion_pruebas, insertar_documento


EMPRESA = {
    'razon_social': 'Dimacza SpA',
    'rut': '76.543.210-K',
    'giro': 'Venta de maquinaria',
    'direccion': 'Los Aromos 55',
    'ciudad': 'Rancagua',
}


def _textos(tabla):
    """Textos de los Paragraph de una tabla de reportlab"""
    return [
        celda.getPlainText() for fila in tabla._cellvalues for celda in fila
        if hasattr(celda, 'getPlainText')
    ]


class TestFormato(unittest.TestCase):
    """Pruebas del formato de pesos y fechas"""

    def test_formatear_clp(self):
        self.assertEqual(formatear_clp(2975), "$ 2.975")
        self.assertEqual(formatear_clp(Decimal("1234567")), "$ 1.234.567")
        self.assertEqual(formatear_clp(0), "$ 0")
        self.assertEqual(formatear_clp(None), "$ 0")
        self.assertEqual(formatear_clp(-15000), "-$ 15.000")

    def test_formatear_clp_redondea_al_peso(self):
        self.assertEqual(formatear_clp(Decimal("2500.50")), "$ 2.501")
        self.assertEqual(formatear_clp("999.49"), "$ 999")

    def test_formatear_fecha(self):
        self.assertEqual(formatear_fecha(date(2026, 3, 9)), "09/03/2026")
        self.assertEqual(formatear_fecha("2026-03-09"), "09/03/2026")
        self.assertEqual(formatear_fecha(None), "-")


class TestDocumentoPDF(unittest.TestCase):
    """Pruebas del generador de PDF"""

    def setUp(self):
        self.pdf = DocumentoPDF(EMPRESA)
        self.documento = {
            'id': 1, 'type': 'INV', 'folio': 6060, 'company_id': 1,
            'date': date(2026, 10, 1), 'expiration_date': None, 'status': 'Emitida',
            'neto': Decimal('2500'), 'tax': Decimal('475'), 'total': Decimal('2975'),
            'notes': 'Entrega en obra & bodega', 'payment_terms': '30 días',
            'reference': 'OC-778', 'driver': '', 'plate': '',
            'company_name': 'Constructora Andes Ltda.', 'company_rut': None,
            'company_giro': '', 'company_address': None, 'company_city': 'Santiago',
            'items': [
                {'name': 'Filtro', 'description': '', 'quantity': 2,
                 'price': Decimal('1000'), 'total': Decimal('2000')},
                {'name': 'Manguera', 'description': '3/4 <pulgada>', 'quantity': 1,
                 'price': Decimal('500'), 'total': Decimal('500')},
            ],
        }

    def test_generar_pdf(self):
        contenido = self.pdf.generar_pdf(self.documento)
        self.assertTrue(contenido.startswith(b'%PDF'))

    def test_generar_pdf_sin_items(self):
        self.documento['items'] = []
        contenido = self.pdf.generar_pdf(self.documento)
        self.assertTrue(contenido.startswith(b'%PDF'))

    def test_datos_cliente_con_valores_por_defecto(self):
        """Los datos faltantes del receptor muestran su texto por defecto"""
        tabla = self.pdf._crear_datos_cliente(self.documento)[0]
        textos = " ".join(_textos(tabla))

        self.assertIn("Constructora Andes Ltda.", textos)
        self.assertIn("Sin RUT", textos)
        self.assertIn("Comercial", textos)
        self.assertIn("Sin dirección", textos)
        self.assertIn("Santiago", textos)
        self.assertIn("01/10/2026", textos)

    def test_encabezado_con_tipo_y_folio(self):
        encabezado = self.pdf._crear_encabezado_principal(self.documento)[0]
        cuadro = encabezado._cellvalues[0][1][0]
        textos = _textos(cuadro)

        self.assertIn("R.U.T.: 76.543.210-K", textos)
        self.assertIn("FACTURA ELECTRÓNICA", textos)
        self.assertIn("N° 6060", textos)

    def test_tipo_desconocido(self):
        self.assertEqual(self.pdf.etiqueta_tipo("XYZ"), "DOCUMENTO")
        self.assertEqual(self.pdf.etiqueta_tipo("DN"), "GUÍA DE DESPACHO ELECTRÓNICA")

    def test_totales_en_pesos(self):
        pie = self.pdf._crear_totales_y_pie(self.documento)[0]
        totales = pie._cellvalues[0][1]
        celdas = [c if isinstance(c, str) else c.getPlainText()for fila in totales._cellvalues for c in fila]

        self.assertIn("$ 2.500", celdas)
        self.assertIn("$ 475", celdas)
        self.assertIn("$ 2.975", celdas)

    def test_items_en_pesos(self):
        tabla = self.pdf._crear_tabla_items(self.documento)[0]
        textos = _textos(tabla)

        self.assertIn("$ 1.000", textos)
        self.assertIn("$ 2.000", textos)
        # El texto del usuario se escapa para reportlab
        self.assertIn("3/4 <pulgada>", " ".join(textos))


class TestImpresionService(unittest.TestCase):
    """Pruebas de la impresión desde la base de datos"""

    def setUp(self):
        self.engine, SessionLocal = crear_sesion_pruebas()
        self.db = SessionLocal()
        self.empresa = crear_empresa(self.db)

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_renderizar_documento(self):
        documento = insertar_documento(self.db, self.empresa, "INV", 6060, items=[(2, "1000")])
        contenido = ImpresionService(self.db, DocumentoPDF(EMPRESA)).renderizar(documento.id)
        self.assertTrue(contenido.startswith(b'%PDF'))

    def test_renderizar_inexistente(self):
        """Id inexistente: NotFoundError y no se genera nada"""
        generador = mock.MagicMock(spec=DocumentoPDF)

        with self.assertRaises(NotFoundError):
            ImpresionService(self.db, generador).renderizar(99999)
        generador.generar_pdf.assert_not_called()


if __name__ == '__main__':
    unittest.main()

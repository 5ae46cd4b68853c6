import os
import json
import qrcode
from io import BytesIO
from xml.sax.saxutils import escape
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, Image

from erp_documentos.utils.formato import formatear_clp, formatear_fecha
from erp_documentos.utils.logger import setup_logger

logger = setup_logger(__name__)

ROJO_SII = colors.HexColor("#C00000")


class DocumentoPDF:
    """
    Representación impresa estilo SII de un documento.

    Es una aproximación visual: no incluye timbre electrónico ni firma.
    """

    TIPOS_DOCUMENTO = {
        "INV": "FACTURA ELECTRÓNICA",
        "QUO": "COTIZACIÓN",
        "DN": "GUÍA DE DESPACHO ELECTRÓNICA",
        "PO": "ORDEN DE COMPRA",
        "CN": "NOTA DE CRÉDITO ELECTRÓNICA",
    }

    # Datos del receptor cuando la empresa no los tiene registrados
    SIN_NOMBRE = "Sin nombre"
    SIN_RUT = "Sin RUT"
    SIN_GIRO = "Comercial"
    SIN_DIRECCION = "Sin dirección"
    SIN_CIUDAD = "Sin ciudad"

    def __init__(self, config):
        self.config = config
        self.empresa = {
            'razon_social': config.get('razon_social', 'MI EMPRESA SpA'),
            'rut': config.get('rut', ''),
            'giro': config.get('giro', ''),
            'direccion': config.get('direccion', 'Dirección Desconocida'),
            'ciudad': config.get('ciudad', ''),
            'oficina_sii': config.get('oficina_sii', 'S.I.I. - SANTIAGO'),
            'logo_path': config.get('logo_path'),
        }

    def etiqueta_tipo(self, tipo):
        return self.TIPOS_DOCUMENTO.get(tipo, "DOCUMENTO")

    def generar_pdf(self, documento):
        """
        Genera el PDF en memoria.

        Args:
            documento: DocumentoVistaSchema (o dict equivalente) con los
                datos de la empresa y sus ítems

        Returns:
            bytes: contenido del PDF
        """
        try:
            if not isinstance(documento, dict):
                documento = documento.model_dump()

            buffer = BytesIO()
            doc = SimpleDocTemplate(
                buffer,
                pagesize=A4,
                leftMargin=1*cm,
                rightMargin=1*cm,
                topMargin=1*cm,
                bottomMargin=1*cm
            )

            self.documento_actual = documento
            elements = []
            elements.extend(self._crear_encabezado_principal(documento))
            elements.extend(self._crear_datos_cliente(documento))
            elements.extend(self._crear_tabla_items(documento))
            elements.extend(self._crear_totales_y_pie(documento))
            elements.extend(self._crear_condiciones(documento))

            doc.build(elements, onFirstPage=self._agregar_metadata)
            return buffer.getvalue()

        except Exception as e:
            logger.error(f"Error generando PDF: {e}")
            raise

    def _agregar_metadata(self, canvas, doc):
        data = self.documento_actual
        canvas.setTitle(f"{self.etiqueta_tipo(data['type'])} N° {data['folio']}")
        canvas.setAuthor(self.empresa['razon_social'])

    def _texto(self, valor, defecto=""):
        if valor is None or str(valor).strip() == "":
            return escape(defecto)
        return escape(str(valor))

    def _estilos(self):
        styles = getSampleStyleSheet()
        styles.add(ParagraphStyle(name='Small', fontSize=8, leading=10))
        styles.add(ParagraphStyle(name='BoldSmall', fontSize=8, leading=10, fontName='Helvetica-Bold'))
        styles.add(ParagraphStyle(name='CenterBold', fontSize=9, alignment=TA_CENTER, fontName='Helvetica-Bold'))
        styles.add(ParagraphStyle(name='Right', fontSize=8, leading=10, alignment=TA_RIGHT))
        styles.add(ParagraphStyle(
            name='CuadroSII', fontSize=12, leading=16, alignment=TA_CENTER,
            fontName='Helvetica-Bold', textColor=ROJO_SII
        ))
        styles.add(ParagraphStyle(
            name='OficinaSII', fontSize=9, alignment=TA_CENTER,
            fontName='Helvetica-Bold', textColor=ROJO_SII
        ))
        return styles

    def _crear_encabezado_principal(self, data):
        s = self._estilos()

        # COLUMNA IZQUIERDA: emisor
        logo = self._get_logo()
        empresa_info = [
            logo if logo else Spacer(1, 1),
            Paragraph(f"<b>{escape(self.empresa['razon_social'])}</b>", s['Heading3']),
            Paragraph(f"<b>Giro:</b> {escape(self.empresa['giro'])}", s['Small']),
            Paragraph(f"<b>Dirección:</b> {escape(self.empresa['direccion'])}", s['Small']),
            Paragraph(escape(self.empresa['ciudad']), s['Small']),
        ]

        # COLUMNA DERECHA: recuadro rojo
        cuadro_sii = Table([
            [Paragraph(f"R.U.T.: {escape(self.empresa['rut'])}", s['CuadroSII'])],
            [Paragraph(escape(self.etiqueta_tipo(data['type'])), s['CuadroSII'])],
            [Paragraph(f"N° {data['folio']}", s['CuadroSII'])],
        ], colWidths=[7*cm])
        cuadro_sii.setStyle(TableStyle([
            ('BOX', (0,0), (-1,-1), 2, ROJO_SII),
            ('VALIGN', (0,0), (-1,-1), 'MIDDLE'),
            ('TOPPADDING', (0,0), (-1,-1), 4),
            ('BOTTOMPADDING', (0,0), (-1,-1), 4),
        ]))
        cuadro = [cuadro_sii, Spacer(1, 3), Paragraph(escape(self.empresa['oficina_sii']), s['OficinaSII'])]

        tabla_header = Table([[empresa_info, cuadro]], colWidths=[11.5*cm, 7.5*cm])
        tabla_header.setStyle(TableStyle([
            ('VALIGN', (0,0), (-1,-1), 'TOP'),
            ('ALIGN', (1,0), (1,0), 'CENTER'),
        ]))

        return [tabla_header, Spacer(1, 0.4*cm)]

    def _crear_datos_cliente(self, data):
        s = self._estilos()

        filas = [
            [
                Paragraph(f"<b>Señor(es):</b> {self._texto(data.get('company_name'), self.SIN_NOMBRE)}", s['Small']),
                Paragraph(f"<b>Fecha Emisión:</b> {formatear_fecha(data.get('date'))}", s['Small']),
            ],
            [
                Paragraph(f"<b>R.U.T.:</b> {self._texto(data.get('company_rut'), self.SIN_RUT)}", s['Small']),
                Paragraph(f"<b>Vencimiento:</b> {formatear_fecha(data.get('expiration_date'))}", s['Small']),
            ],
            [
                Paragraph(f"<b>Giro:</b> {self._texto(data.get('company_giro'), self.SIN_GIRO)}", s['Small']),
                Paragraph(f"<b>Referencia:</b> {self._texto(data.get('reference'), '-')}", s['Small']),
            ],
            [
                Paragraph(f"<b>Dirección:</b> {self._texto(data.get('company_address'), self.SIN_DIRECCION)}", s['Small']),
                Paragraph(f"<b>Ciudad:</b> {self._texto(data.get('company_city'), self.SIN_CIUDAD)}", s['Small']),
            ],
        ]

        t = Table(filas, colWidths=[12*cm, 7*cm])
        t.setStyle(TableStyle([
            ('BOX', (0,0), (-1,-1), 0.5, colors.black),
            ('VALIGN', (0,0), (-1,-1), 'MIDDLE'),
            ('PADDING', (0,0), (-1,-1), 4),
        ]))
        return [t, Spacer(1, 0.4*cm)]

    def _crear_tabla_items(self, data):
        s = self._estilos()

        headers = ["#", "Descripción", "Cantidad", "Precio Unit.", "Total"]
        rows = [[Paragraph(f"<b>{h}</b>", s['CenterBold']) for h in headers]]

        items = data.get('items') or []
        for i, item in enumerate(items, start=1):
            nombre = f"<b>{self._texto(item.get('name'))}</b>"
            if item.get('description'):
                nombre += f"<br/>{self._texto(item.get('description'))}"
            rows.append([
                Paragraph(str(i), s['Small']),
                Paragraph(nombre, s['Small']),
                Paragraph(str(item['quantity']), s['Right']),
                Paragraph(formatear_clp(item['price']), s['Right']),
                Paragraph(formatear_clp(item['total']), s['Right']),
            ])

        if not items:
            rows.append(["", Paragraph("Documento sin detalle de ítems", s['Small']), "", "", ""])

        t = Table(rows, colWidths=[1*cm, 10*cm, 2*cm, 3*cm, 3*cm], repeatRows=1)
        t.setStyle(TableStyle([
            ('BOX', (0,0), (-1,-1), 1, colors.black),
            ('GRID', (0,0), (-1,-1), 0.25, colors.grey),
            ('BACKGROUND', (0,0), (-1,0), colors.lightgrey),
            ('VALIGN', (0,0), (-1,-1), 'MIDDLE'),
            ('PADDING', (0,0), (-1,-1), 4),
        ]))

        return [t, Spacer(1, 0.3*cm)]

    def _crear_totales_y_pie(self, data):
        s = self._estilos()

        rows = [
            ["MONTO NETO:", formatear_clp(data.get('neto'))],
            ["IVA 19%:", formatear_clp(data.get('tax'))],
            [Paragraph("<b>TOTAL:</b>", s['BoldSmall']),
             Paragraph(f"<b>{formatear_clp(data.get('total'))}</b>", s['BoldSmall'])],
        ]

        timbre = [
            self._generar_qr(data),
            Paragraph("Representación impresa del documento", s['Small']),
        ]

        right_content = Table(rows, colWidths=[4*cm, 4*cm])
        right_content.setStyle(TableStyle([
            ('ALIGN', (0,0), (-1,-1), 'RIGHT'),
            ('BOX', (0,0), (-1,-1), 0.5, colors.black),
            ('GRID', (0,0), (-1,-1), 0.25, colors.grey),
            ('BACKGROUND', (0,-1), (-1,-1), colors.lightgrey),
        ]))

        main_footer = Table([[timbre, right_content]], colWidths=[11*cm, 8*cm])
        main_footer.setStyle(TableStyle([
            ('VALIGN', (0,0), (-1,-1), 'TOP'),
            ('ALIGN', (1,0), (1,0), 'RIGHT'),
        ]))

        return [main_footer, Spacer(1, 0.4*cm)]

    def _crear_condiciones(self, data):
        s = self._estilos()

        campos = [
            ("Observaciones", data.get('notes')),
            ("Condiciones de pago", data.get('payment_terms')),
            ("Plazo de entrega", data.get('delivery_time')),
            ("Garantía", data.get('warranty')),
            ("Tipo de despacho", data.get('dispatch_type')),
            ("Chofer", data.get('driver')),
            ("Patente", data.get('plate')),
        ]
        elements = []
        for etiqueta, valor in campos:
            if valor:
                elements.append(Paragraph(f"<b>{etiqueta}:</b> {self._texto(valor)}", s['Small']))
        return elements

    def _generar_qr(self, data):
        try:
            qr_dict = {
                "rut_emisor": self.empresa['rut'],
                "tipo": data['type'],
                "folio": data['folio'],
                "fecha": str(data.get('date') or ''),
                "rut_receptor": data.get('company_rut') or '',
                "total": str(data.get('total') or 0),
            }

            qr = qrcode.make(json.dumps(qr_dict))
            img_buffer = BytesIO()
            qr.save(img_buffer)
            img_buffer.seek(0)
            return Image(img_buffer, width=3*cm, height=3*cm)
        except Exception as e:
            logger.error(f"Error generando QR: {e}")
            return Spacer(1, 1)

    def _get_logo(self):
        if not self.empresa['logo_path'] or not os.path.exists(self.empresa['logo_path']):
            return None

        try:
            logo = Image(self.empresa['logo_path'])
            logo.drawHeight = 2*cm
            logo.drawWidth = 4*cm
            return logo
        except Exception as e:
            logger.error(f"Error al cargar logo: {e}")
            return None

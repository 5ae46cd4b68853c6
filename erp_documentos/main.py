import argparse
import sys
import logging
from erp_documentos.core.exceptions import DocumentoError
from erp_documentos.database.database import Base, SessionLocal, engine
from erp_documentos.database import models
from erp_documentos.schemas.documento import normalizar_tipo
from erp_documentos.services.consulta import ConsultaService
from erp_documentos.services.folios import FolioService
from erp_documentos.services.impresion import ImpresionService
from erp_documentos.utils.formato import formatear_clp, formatear_fecha
from erp_documentos.utils.logger import setup_logger


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description='Documentos comerciales del CRM/ERP')
    
    subparsers = parser.add_subparsers(dest='comando', help='Comandos disponibles')
    
    # Crear tablas
    subparsers.add_parser('init-db', help='Crear las tablas de la base de datos')
    
    # Siguiente folio
    folio_parser = subparsers.add_parser('folio', help='Consultar el siguiente folio de un tipo')
    folio_parser.add_argument('--tipo', type=str, required=True, help='Tipo de documento (INV, QUO, DN...)')
    
    # Listar documentos
    listar_parser = subparsers.add_parser('listar', help='Listar documentos')
    listar_parser.add_argument('--tipo', type=str, help='Filtrar por tipo')
    listar_parser.add_argument('--buscar', type=str, help='Buscar por empresa, folio o referencia')
    
    # Exportar PDF
    pdf_parser = subparsers.add_parser('pdf', help='Generar la representación impresa de un documento')
    pdf_parser.add_argument('--id', type=int, required=True, help='Id del documento')
    pdf_parser.add_argument('--salida', type=str, help='Archivo de salida (por defecto documento_<id>.pdf)')
    
    parser.add_argument('--debug', action='store_true', help='Activar modo depuración')
    
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_arguments(argv)
    
    logger = setup_logger('erp_documentos')
    if args.debug:
        logger.setLevel(logging.DEBUG)
    
    if args.comando == 'init-db':
        Base.metadata.create_all(bind=engine)
        logger.info("Tablas creadas/verificadas")
        return 0
    
    db = SessionLocal()
    try:
        if args.comando == 'folio':
            tipo = normalizar_tipo(args.tipo)
            print(f"Siguiente folio {tipo}: {FolioService(db).consultar_siguiente(tipo)}")
        elif args.comando == 'listar':
            documentos = ConsultaService(db).listar_documentos(tipo=args.tipo, search=args.buscar)
            print_tabla(
                [[d.id, d.type, d.folio, formatear_fecha(d.date), d.company_name, d.status, formatear_clp(d.total)]
                 for d in documentos],
                ['Id', 'Tipo', 'Folio', 'Fecha', 'Empresa', 'Estado', 'Total']
            )
        elif args.comando == 'pdf':
            contenido = ImpresionService(db).renderizar(args.id)
            salida = args.salida or f"documento_{args.id}.pdf"
            with open(salida, 'wb') as f:
                f.write(contenido)
            print(f"PDF generado: {salida}")
        else:
            logger.error("Comando no reconocido")
            return 1
    except DocumentoError as e:
        logger.error(str(e))
        return 1
    finally:
        db.close()
    
    return 0


def print_tabla(data, headers):
    if not data:
        print("No hay datos para mostrar")
        return
    
    # Determinar el ancho de cada columna
    widths = [max(len(str(item[i])) for item in data) for i in range(len(headers))]
    
    for i in range(len(widths)):
        widths[i] = max(widths[i], len(headers[i])) + 2
    
    header_line = '|'
    for i, header in enumerate(headers):
        header_line += f" {header.ljust(widths[i] - 1)}|"
    print(header_line)
    
    separator = '+'
    for width in widths:
        separator += '-' * width + '+'
    print(separator)
    
    for row in data:
        line = '|'
        for i, item in enumerate(row):
            line += f" {str(item).ljust(widths[i] - 1)}|"
        print(line)


if __name__ == "__main__":
    sys.exit(main())

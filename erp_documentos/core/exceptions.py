"""
Errores del subsistema de emisión de documentos
"""


class DocumentoError(Exception):
    """Error base de documentos"""


class ValidationError(DocumentoError):
    """Datos faltantes o inválidos; la operación no se intenta"""


class NotFoundError(DocumentoError):
    """El documento solicitado no existe"""


class PersistenceError(DocumentoError):
    """Falla de la base de datos dentro de una unidad de trabajo (ya revertida)"""


class FolioDuplicadoError(PersistenceError):
    """Ya existe un documento con el mismo tipo y folio"""

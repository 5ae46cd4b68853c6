from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
from contextlib import asynccontextmanager
from erp_documentos.config import Config
from erp_documentos.api.routes import router as documentos_router
from erp_documentos.database.database import engine, Base
from erp_documentos.database import models
from erp_documentos.utils.logger import setup_logger

logger = setup_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestión del ciclo de vida de la aplicación
    - Crea las tablas de la base de datos al iniciar
    """
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Tablas de base de datos creadas/verificadas")
    except Exception as e:
        logger.error(f"Error al crear tablas: {str(e)}")
    
    yield
    
    logger.info("Cerrando aplicación")


app = FastAPI(
    title="API de Documentos Comerciales",
    description="Emisión de cotizaciones, facturas y guías de despacho del CRM/ERP",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(documentos_router)


@app.get("/")
async def root():
    """Endpoint raíz"""
    return {
        "service": "Documentos API",
        "status": "online",
        "version": "1.0.0",
        "endpoints": {
            "docs": "/docs",
            "redoc": "/redoc",
            "documents": "/api/documents"
        }
    }


@app.get("/health")
async def health_check():
    """Endpoint de health check"""
    return {"status": "ok", "service": "documentos"}


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Manejador global de excepciones"""
    logger.error(f"Error no manejado: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Error interno del servidor"}
    )


if __name__ == "__main__":
    uvicorn.run(
        "erp_documentos.api_main:app",
        host=Config.API_HOST,
        port=Config.API_PORT,
        reload=True
    )

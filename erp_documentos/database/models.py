from sqlalchemy import (
    Column, Integer, String, Date, DateTime, Text, Numeric, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from datetime import date, datetime
from erp_documentos.database.database import Base


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255))
    industry = Column(String(255))
    city = Column(String(255))
    address = Column(String(255), default="")
    status = Column(String(50), default="Prospecto")
    type = Column(String(50), default="Cliente")

    # Identidad tributaria
    rut = Column(String(50))
    giro = Column(String(255))

    documents = relationship("Document", back_populates="company")


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)

    # Datos del documento
    type = Column(String(20), nullable=False, index=True)
    folio = Column(Integer, nullable=False)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, default=date.today)
    expiration_date = Column(Date, nullable=True)
    status = Column(String(50), nullable=False, default="Emitida")

    # Importes
    neto = Column(Numeric(12, 2), nullable=False, default=0)
    tax = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False, default=0)

    # Condiciones comerciales
    notes = Column(Text, nullable=True)
    payment_terms = Column(String(255), nullable=True)
    delivery_time = Column(String(255), nullable=True)
    warranty = Column(String(255), nullable=True)
    reference = Column(String(255), default="")

    # Documento de origen (cotización -> factura), sin FK
    parent_id = Column(Integer, nullable=True)

    # Despacho
    driver = Column(String(255), default="")
    plate = Column(String(255), default="")
    dispatch_type = Column(String(255), default="")

    file_url = Column(String(500), default="")

    company = relationship("Company", back_populates="documents")
    items = relationship(
        "DocumentItem",
        back_populates="document",
        cascade="all, delete-orphan",
        order_by="DocumentItem.id",
    )

    __table_args__ = (
        UniqueConstraint("type", "folio", name="uq_documents_type_folio"),
    )


class DocumentItem(Base):
    __tablename__ = "document_items"

    id = Column(Integer, primary_key=True, index=True)
    document_id = Column(
        Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    product_id = Column(Integer, nullable=True)
    name = Column(String(255))
    description = Column(Text, default="")
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)

    document = relationship("Document", back_populates="items")


class FolioSequence(Base):
    """Último folio asignado por tipo de documento"""
    __tablename__ = "folio_sequences"

    type = Column(String(20), primary_key=True)
    last_folio = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

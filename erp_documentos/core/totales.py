"""
Cálculo de totales de documentos (IVA Chile)
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from pydantic import BaseModel, Field

TASA_IVA = Decimal("0.19")


class Totales(BaseModel):
    """Montos agregados de un documento"""
    neto: Decimal = Field(Decimal(0), description="Monto neto")
    tax: Decimal = Field(Decimal(0), description="IVA")
    total: Decimal = Field(Decimal(0), description="Neto + IVA")


def _decimal(valor) -> Decimal:
    if isinstance(valor, Decimal):
        return valor
    # str() evita arrastrar el error binario de los float
    return Decimal(str(valor))


def total_item(quantity, price) -> Decimal:
    """Total literal de una línea: cantidad x precio, sin redondeo"""
    return _decimal(quantity) * _decimal(price)


def calcular_totales(items: Iterable = None) -> Totales:
    """
    Calcula neto, IVA y total para una lista de ítems.

    El IVA se redondea una sola vez sobre el neto agregado, al peso más
    cercano (mitad hacia arriba), nunca por línea.

    Args:
        items: objetos o dicts con ``quantity`` y ``price``

    Returns:
        Totales: neto, tax y total; todo en cero si no hay ítems
    """
    neto = Decimal(0)
    for item in items or []:
        if isinstance(item, dict):
            neto += total_item(item["quantity"], item["price"])
        else:
            neto += total_item(item.quantity, item.price)

    tax = (neto * TASA_IVA).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return Totales(neto=neto, tax=tax, total=neto + tax)

"""
Formatos de presentación chilenos (pesos y fechas)
"""
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP


def formatear_clp(valor):
    """
    Formatea un monto en pesos chilenos: 1234567 -> "$ 1.234.567".
    El peso no usa decimales; se redondea al entero más cercano.
    """
    if valor is None or valor == "":
        valor = 0
    monto = Decimal(str(valor)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    texto = f"{abs(int(monto)):,}".replace(",", ".")
    signo = "-" if monto < 0 else ""
    return f"{signo}$ {texto}"


def formatear_fecha(valor):
    """date o 'YYYY-MM-DD' -> 'DD/MM/YYYY'; '-' si no hay fecha"""
    if not valor:
        return "-"
    if isinstance(valor, (date, datetime)):
        return valor.strftime("%d/%m/%Y")
    texto = str(valor).strip()
    try:
        return datetime.strptime(texto[:10], "%Y-%m-%d").strftime("%d/%m/%Y")
    except ValueError:
        return texto

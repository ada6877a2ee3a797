import re
from datetime import date
from decimal import Decimal

MESES_ESPANOL = {
    1: 'enero', 2: 'febrero', 3: 'marzo', 4: 'abril', 5: 'mayo', 6: 'junio',
    7: 'julio', 8: 'agosto', 9: 'septiembre', 10: 'octubre', 11: 'noviembre', 12: 'diciembre'
}

MESES_CORTOS = {
    1: 'Ene', 2: 'Feb', 3: 'Mar', 4: 'Abr', 5: 'May', 6: 'Jun',
    7: 'Jul', 8: 'Ago', 9: 'Sep', 10: 'Oct', 11: 'Nov', 12: 'Dic'
}

# date.weekday(): 0 = Lunes
DIAS_SEMANA = ['lunes', 'martes', 'miércoles', 'jueves', 'viernes', 'sábado', 'domingo']

_NUMERO_MES = {nombre: numero for numero, nombre in MESES_ESPANOL.items()}
_FECHA_ISO = re.compile(r'^(\d{4})-(\d{2})-(\d{2})')
_FECHA_LARGA = re.compile(r'(\d{1,2})\s+de\s+(\w+)\s+de\s+(\d{4})', re.IGNORECASE)


def a_nombre_propio(texto):
    """'MARÍA  soledad' -> 'María Soledad'"""
    if not texto:
        return ""
    return ' '.join(p[:1].upper() + p[1:] for p in texto.lower().strip().split())


def fecha_larga(fecha):
    """date(2026, 1, 6) -> 'martes, 06 de enero de 2026'"""
    if not fecha:
        return ""
    return f"{DIAS_SEMANA[fecha.weekday()]}, {fecha_simple(fecha)}"


def fecha_simple(fecha):
    """date(2026, 1, 6) -> '06 de enero de 2026'"""
    if not fecha:
        return ""
    return f"{fecha.day:02d} de {MESES_ESPANOL[fecha.month]} de {fecha.year}"


# La planilla muestra las fechas igual que el documento del decreto
fecha_excel = fecha_simple


def fecha_numerica(fecha):
    if not fecha:
        return ""
    return fecha.strftime('%d/%m/%Y')


def decimal_con_coma(valor, decimales=1):
    """Decimal('1.5') -> '1,5' (formato chileno)"""
    if valor is None:
        return ""
    return f"{Decimal(valor):.{decimales}f}".replace('.', ',')


def parsear_fecha_planilla(texto):
    """
    Interpreta las fechas tal como llegan desde la planilla:
    '2026-01-06', '2026-01-06T03:00:00.000Z', 'martes, 06 de enero de 2026'
    o '06 de enero de 2026'. Devuelve None si no se reconoce el formato.
    """
    if isinstance(texto, date):
        return texto
    if not texto:
        return None
    texto = str(texto).strip()

    iso = _FECHA_ISO.match(texto)
    if iso:
        try:
            return date(int(iso.group(1)), int(iso.group(2)), int(iso.group(3)))
        except ValueError:
            return None

    larga = _FECHA_LARGA.search(texto)
    if larga:
        # Un mes desconocido se toma como enero
        mes = _NUMERO_MES.get(larga.group(2).lower(), 1)
        try:
            return date(int(larga.group(3)), mes, int(larga.group(1)))
        except ValueError:
            return None

    return None

from django import template

from .. import formato

register = template.Library()


@register.filter(name='fecha_larga')
def fecha_larga(fecha):
    """Ej: date(2026, 1, 6) -> 'martes, 06 de enero de 2026'"""
    return formato.fecha_larga(fecha)


@register.filter(name='fecha_simple')
def fecha_simple(fecha):
    return formato.fecha_simple(fecha)


@register.filter(name='coma')
def coma(valor, decimales=1):
    """Decimal con coma: 5.5 -> '5,5'"""
    try:
        return formato.decimal_con_coma(valor, int(decimales))
    except (ValueError, TypeError, ArithmeticError):
        return valor


@register.filter(name='saldo_clase')
def saldo_clase(saldo):
    """Clase CSS según el saldo: negativo en rojo, bajo en ámbar."""
    try:
        saldo = float(saldo)
    except (ValueError, TypeError):
        return ''
    if saldo < 0:
        return 'saldo-negativo'
    if saldo < 2:
        return 'saldo-bajo'
    return 'saldo-ok'


@register.filter(name='get_item')
def get_item(diccionario, clave):
    """Acceso a diccionarios con clave variable en la plantilla."""
    return diccionario.get(clave)

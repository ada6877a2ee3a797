"""
Validaciones del formulario de decretos.

Ningún error de validación es fatal: se acumulan en una lista de mensajes
para el usuario y bloquean el guardado.
"""
import re
from datetime import date
from decimal import Decimal

from django.utils import timezone

from .registros import (
    TIPOS_SOLICITUD,
    OPCIONES_JORNADA,
    MATERIA_POR_DEFECTO,
    JORNADA_COMPLETA,
    a_decimal,
)

ANIO_MINIMO = 2020
ANIO_MAXIMO = 2030


def limpiar_rut(rut):
    return (rut or '').replace('.', '').replace('-', '').strip().upper()


def digito_verificador(cuerpo):
    """Dígito verificador módulo 11 ('K' para 10, '0' para 11)."""
    suma = 0
    multiplicador = 2
    for digito in reversed(cuerpo):
        suma += int(digito) * multiplicador
        multiplicador = 2 if multiplicador == 7 else multiplicador + 1
    resto = 11 - (suma % 11)
    if resto == 11:
        return '0'
    if resto == 10:
        return 'K'
    return str(resto)


def validar_rut(rut):
    if not rut or len(rut) < 8:
        return False
    limpio = limpiar_rut(rut)
    cuerpo, dv = limpio[:-1], limpio[-1:]
    if not re.fullmatch(r'[0-9]+', cuerpo):
        return False
    return digito_verificador(cuerpo) == dv


def formatear_rut(rut):
    """'147355351' -> '14.735.535-1'"""
    valor = (rut or '').replace('.', '').replace('-', '').strip()
    if len(valor) <= 1:
        return valor
    cuerpo, dv = valor[:-1], valor[-1].upper()
    cuerpo = re.sub(r'\B(?=(\d{3})+(?!\d))', '.', cuerpo)
    return f"{cuerpo}-{dv}"


def validar_fecha(fecha):
    if not isinstance(fecha, date):
        return False
    return ANIO_MINIMO <= fecha.year <= ANIO_MAXIMO


def parsear_fecha(texto):
    if isinstance(texto, date):
        return texto
    try:
        return date.fromisoformat((texto or '').strip())
    except ValueError:
        return None


def es_dia_habil(fecha, feriados=None):
    """
    Lunes a viernes que no sea feriado. Si no se entregan feriados se
    consultan los registrados en la base de datos.
    """
    if fecha.weekday() >= 5:
        return False
    if feriados is None:
        from .models import DiaFeriado
        return not DiaFeriado.objects.filter(fecha=fecha).exists()
    return fecha not in feriados


def validar_formulario(datos, feriados=None):
    """
    Valida los datos enviados por el formulario (request.POST o un dict).

    Devuelve (limpios, errores): los valores convertidos a sus tipos y la
    lista de mensajes de error. Si hay errores, 'limpios' no debe guardarse.
    """
    errores = []
    limpios = {}

    # 1. Campos obligatorios
    funcionario = (datos.get('funcionario') or '').strip()
    rut = (datos.get('rut') or '').strip()
    fecha_inicio_txt = (datos.get('fecha_inicio') or '').strip()
    if not funcionario or not rut or not fecha_inicio_txt:
        errores.append("Por favor, completa los campos requeridos.")

    # 2. Tipo de solicitud y jornada
    tipo = (datos.get('solicitud_type') or '').strip().upper()
    if tipo not in TIPOS_SOLICITUD:
        errores.append("Tipo de solicitud inválido.")
    tipo_jornada = datos.get('tipo_jornada') or JORNADA_COMPLETA
    if tipo_jornada not in OPCIONES_JORNADA:
        errores.append("Tipo de jornada inválido.")

    # 3. RUT
    if rut and not validar_rut(rut):
        errores.append(f"El RUT {rut} no es válido.")

    # 4. Fechas
    fecha_inicio = None
    if fecha_inicio_txt:
        fecha_inicio = parsear_fecha(fecha_inicio_txt)
        if not validar_fecha(fecha_inicio):
            errores.append("La fecha de inicio no es válida (debe estar entre 2020 y 2030).")
            fecha_inicio = None
        elif not es_dia_habil(fecha_inicio, feriados):
            errores.append("La fecha de inicio debe ser un día hábil.")

    fecha_decreto = None
    fecha_decreto_txt = (datos.get('fecha_decreto') or '').strip()
    if fecha_decreto_txt:
        fecha_decreto = parsear_fecha(fecha_decreto_txt)
        if not validar_fecha(fecha_decreto):
            errores.append("La fecha del decreto no es válida.")
            fecha_decreto = None

    # 5. Días
    cantidad_dias = a_decimal(datos.get('cantidad_dias'))
    if cantidad_dias is None or cantidad_dias <= 0 or (cantidad_dias * 2) % 1 != 0:
        errores.append("La cantidad de días debe ser positiva y en múltiplos de 0,5.")
    dias_haber = a_decimal(datos.get('dias_haber'))
    if dias_haber is None:
        errores.append("Los días a su haber deben ser un número.")

    limpios.update({
        'solicitud_type': tipo,
        'materia': (datos.get('materia') or MATERIA_POR_DEFECTO).strip(),
        'acto': (datos.get('acto') or '').strip(),
        'funcionario': funcionario,
        'rut': formatear_rut(rut) if rut else '',
        'periodo': (datos.get('periodo') or '').strip() or str(timezone.localdate().year),
        'cantidad_dias': cantidad_dias if cantidad_dias is not None else Decimal('0'),
        'fecha_inicio': fecha_inicio,
        'tipo_jornada': tipo_jornada,
        'dias_haber': dias_haber if dias_haber is not None else Decimal('0'),
        'fecha_decreto': fecha_decreto or timezone.localdate(),
        'ra': (datos.get('ra') or 'MGA').strip(),
        'emite': (datos.get('emite') or 'mga').strip(),
        'observaciones': (datos.get('observaciones') or '').strip(),
    })
    return limpios, errores

import calendar
from collections import defaultdict
from datetime import date
from decimal import Decimal

from django.utils import timezone

from .formato import MESES_CORTOS, MESES_ESPANOL
from .registros import TIPO_PERMISO, TIPO_FERIADO, TIPOS_SOLICITUD, saldos_actuales

UMBRAL_SALDO_BAJO = Decimal('2')
MAXIMO_NOTIFICACIONES = 20
PESTANA_TODOS = 'ALL'

CAMPOS_ORDEN = {
    'acto': lambda r: r.acto,
    'funcionario': lambda r: r.funcionario.lower(),
    'tipo': lambda r: r.solicitud_type,
    'fecha_inicio': lambda r: r.fecha_inicio or date.min,
    'cantidad_dias': lambda r: r.cantidad_dias,
    'saldo': lambda r: r.saldo,
}


# ============================================================
#   LISTADO
# ============================================================

def filtrar_registros(registros, pestana=PESTANA_TODOS, busqueda='', orden=None, sentido='desc'):
    """
    Filtra por pestaña (ALL/PA/FL) y texto (funcionario, acto o RUT) y ordena.
    Sin campo de orden se muestran primero los más recientes.
    """
    termino = (busqueda or '').strip().lower()
    filtrados = [
        r for r in registros
        if (pestana == PESTANA_TODOS or r.solicitud_type == pestana)
        and (not termino
             or termino in r.funcionario.lower()
             or termino in r.acto.lower()
             or termino in r.rut.lower())
    ]
    clave = CAMPOS_ORDEN.get(orden)
    if clave is None:
        return sorted(filtrados, key=lambda r: r.creado_en, reverse=True)
    return sorted(filtrados, key=clave, reverse=(sentido == 'desc'))


# ============================================================
#   DASHBOARD
# ============================================================

def _clave_mes(anio, mes):
    return f"{MESES_CORTOS[mes]} {str(anio)[-2:]}"


def dias_por_mes(registros, hoy=None, meses=6):
    """Días otorgados por mes (PA y FL) en los últimos 'meses' meses."""
    hoy = hoy or timezone.localdate()
    datos = {}
    for atras in range(meses - 1, -1, -1):
        anio, mes = divmod(hoy.year * 12 + hoy.month - 1 - atras, 12)
        datos[_clave_mes(anio, mes + 1)] = {TIPO_PERMISO: Decimal('0'), TIPO_FERIADO: Decimal('0'), 'total': Decimal('0')}

    for r in registros:
        if not r.fecha_inicio:
            continue
        clave = _clave_mes(r.fecha_inicio.year, r.fecha_inicio.month)
        if clave in datos:
            datos[clave][r.solicitud_type] += r.cantidad_dias
            datos[clave]['total'] += r.cantidad_dias

    return [{'nombre': nombre, **valores} for nombre, valores in datos.items()]


def distribucion_por_tipo(registros):
    return {tipo: sum(1 for r in registros if r.solicitud_type == tipo) for tipo in TIPOS_SOLICITUD}


def top_funcionarios(registros, limite=5):
    por_rut = {}
    for r in registros:
        fila = por_rut.setdefault(r.rut, {'nombre': r.funcionario, 'rut': r.rut, 'dias': Decimal('0')})
        fila['dias'] += r.cantidad_dias
    return sorted(por_rut.values(), key=lambda f: f['dias'], reverse=True)[:limite]


def saldos_bajos(registros, umbral=UMBRAL_SALDO_BAJO):
    return [s for s in saldos_actuales(registros) if s['saldo'] < umbral]


def resumen_dashboard(registros, hoy=None):
    total_dias = sum((r.cantidad_dias for r in registros), Decimal('0'))
    promedio = (total_dias / len(registros)).quantize(Decimal('0.1')) if registros else Decimal('0')
    return {
        'dias_por_mes': dias_por_mes(registros, hoy),
        'distribucion': distribucion_por_tipo(registros),
        'top_funcionarios': top_funcionarios(registros),
        'saldos_bajos': saldos_bajos(registros),
        'promedio_dias': promedio,
        'funcionarios_activos': len({r.rut for r in registros}),
        'total_dias': total_dias,
        'total_decretos': len(registros),
    }


def notificaciones_saldo(registros, empleados):
    """
    Alertas sobre el último permiso administrativo de cada funcionario:
    'Saldo bajo' entre 0 y 2 días, 'Saldo negativo' bajo cero.
    """
    vigentes = {
        s['rut']: s['saldo'] for s in saldos_actuales(registros) if s['tipo'] == TIPO_PERMISO
    }
    alertas = []
    for empleado in empleados:
        saldo = vigentes.get(empleado.rut)
        if saldo is None:
            continue
        if Decimal('0') <= saldo < UMBRAL_SALDO_BAJO:
            alertas.append({
                'id': f"low-{empleado.rut}",
                'titulo': 'Saldo bajo',
                'mensaje': f"{empleado.nombre} tiene solo {saldo:.1f} días de permiso disponibles",
                'rut': empleado.rut,
                'saldo': saldo,
            })
        elif saldo < 0:
            alertas.append({
                'id': f"negative-{empleado.rut}",
                'titulo': 'Saldo negativo',
                'mensaje': f"{empleado.nombre} tiene saldo negativo ({saldo:.1f} días)",
                'rut': empleado.rut,
                'saldo': saldo,
            })
    return alertas[:MAXIMO_NOTIFICACIONES]


# ============================================================
#   CALENDARIO
# ============================================================

def calendario_mensual(registros, anio, mes, hoy=None):
    """
    Grilla del mes comenzando en domingo. Cada semana es una lista de 7
    celdas; las celdas fuera del mes son None.
    """
    hoy = hoy or timezone.localdate()
    por_dia = defaultdict(list)
    for r in registros:
        if r.fecha_inicio and r.fecha_inicio.year == anio and r.fecha_inicio.month == mes:
            por_dia[r.fecha_inicio.day].append(r)

    semanas = []
    for semana in calendar.Calendar(firstweekday=calendar.SUNDAY).monthdatescalendar(anio, mes):
        celdas = []
        for dia in semana:
            if dia.month != mes:
                celdas.append(None)
                continue
            celdas.append({
                'fecha': dia,
                'dia': dia.day,
                'fin_de_semana': dia.weekday() >= 5,
                'hoy': dia == hoy,
                'decretos': por_dia.get(dia.day, []),
            })
        semanas.append(celdas)

    anterior = (anio - 1, 12) if mes == 1 else (anio, mes - 1)
    siguiente = (anio + 1, 1) if mes == 12 else (anio, mes + 1)
    return {
        'anio': anio,
        'mes': mes,
        'nombre_mes': MESES_ESPANOL[mes].capitalize(),
        'semanas': semanas,
        'anterior': anterior,
        'siguiente': siguiente,
        'total_decretos': sum(len(v) for v in por_dia.values()),
    }

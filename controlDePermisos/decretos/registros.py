"""
Tipos del dominio y reglas puras sobre el historial de decretos.

Nada de este módulo toca la base de datos: todas las funciones reciben la
lista de registros y devuelven un valor, de modo que el saldo de un
funcionario es siempre función del historial y no un total acumulado.
"""
import re
from dataclasses import dataclass, asdict, replace
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Optional

TIPO_PERMISO = 'PA'
TIPO_FERIADO = 'FL'
TIPOS_SOLICITUD = (TIPO_PERMISO, TIPO_FERIADO)

NOMBRES_TIPO = {
    TIPO_PERMISO: 'Permiso Administrativo',
    TIPO_FERIADO: 'Feriado Legal',
}

# Días asignados cuando el funcionario no tiene decretos previos del tipo
DIAS_BASE = {
    TIPO_PERMISO: Decimal('6'),
    TIPO_FERIADO: Decimal('15'),
}

JORNADA_COMPLETA = '(Jornada completa)'
JORNADA_MANANA = '(Jornada mañana)'
JORNADA_TARDE = '(Jornada tarde)'
OPCIONES_JORNADA = (JORNADA_COMPLETA, JORNADA_MANANA, JORNADA_TARDE)

MATERIA_POR_DEFECTO = 'Decreto Exento'


@dataclass
class Empleado:
    nombre: str
    rut: str


@dataclass
class RegistroPermiso:
    id: str
    solicitud_type: str
    funcionario: str
    rut: str
    cantidad_dias: Decimal
    dias_haber: Decimal
    fecha_inicio: Optional[date]
    creado_en: datetime
    materia: str = MATERIA_POR_DEFECTO
    acto: str = ''
    periodo: str = ''
    tipo_jornada: str = JORNADA_COMPLETA
    fecha_decreto: Optional[date] = None
    ra: str = 'MGA'
    emite: str = 'mga'
    observaciones: str = ''

    @property
    def saldo(self) -> Decimal:
        return self.dias_haber - self.cantidad_dias

    def con_cambios(self, **cambios) -> 'RegistroPermiso':
        return replace(self, **cambios)

    def a_dict(self) -> dict:
        """Representación JSON usada para las instantáneas de deshacer."""
        datos = asdict(self)
        datos['cantidad_dias'] = str(self.cantidad_dias)
        datos['dias_haber'] = str(self.dias_haber)
        datos['fecha_inicio'] = self.fecha_inicio.isoformat() if self.fecha_inicio else None
        datos['fecha_decreto'] = self.fecha_decreto.isoformat() if self.fecha_decreto else None
        datos['creado_en'] = self.creado_en.isoformat()
        return datos

    @classmethod
    def desde_dict(cls, datos: dict) -> 'RegistroPermiso':
        datos = dict(datos)
        datos['cantidad_dias'] = Decimal(datos['cantidad_dias'])
        datos['dias_haber'] = Decimal(datos['dias_haber'])
        datos['fecha_inicio'] = date.fromisoformat(datos['fecha_inicio']) if datos.get('fecha_inicio') else None
        datos['fecha_decreto'] = date.fromisoformat(datos['fecha_decreto']) if datos.get('fecha_decreto') else None
        datos['creado_en'] = datetime.fromisoformat(datos['creado_en'])
        return cls(**datos)


# --- Saldos ---

def ultimo_registro(registros: Iterable[RegistroPermiso], rut: str, tipo: str) -> Optional[RegistroPermiso]:
    """Decreto más reciente (por creado_en) del funcionario para el tipo dado."""
    candidatos = [r for r in registros if r.rut == rut and r.solicitud_type == tipo]
    if not candidatos:
        return None
    return max(candidatos, key=lambda r: r.creado_en)


def saldo_detectado(registros, rut, tipo) -> Optional[Decimal]:
    ultimo = ultimo_registro(registros, rut, tipo)
    return ultimo.saldo if ultimo else None


def dias_haber_sugeridos(registros, rut, tipo) -> Decimal:
    """
    Días a su haber con que se precarga un decreto nuevo: el saldo del último
    decreto del mismo funcionario y tipo, o la asignación base del tipo.
    """
    saldo = saldo_detectado(registros, rut, tipo)
    if saldo is None:
        return DIAS_BASE.get(tipo, DIAS_BASE[TIPO_PERMISO])
    return saldo


def saldos_actuales(registros) -> List[dict]:
    """Saldo vigente de cada par (rut, tipo), del más bajo al más alto."""
    vistos = {}
    for r in sorted(registros, key=lambda r: r.creado_en, reverse=True):
        clave = (r.rut, r.solicitud_type)
        if clave not in vistos:
            vistos[clave] = {
                'nombre': r.funcionario,
                'rut': r.rut,
                'tipo': r.solicitud_type,
                'saldo': r.saldo,
            }
    return sorted(vistos.values(), key=lambda s: s['saldo'])


# --- Correlativos ---

_NUMERO_INICIAL = re.compile(r'^\s*(\d+)')


def _numero_acto(acto: str) -> int:
    coincidencia = _NUMERO_INICIAL.match(acto.split('/')[0])
    return int(coincidencia.group(1)) if coincidencia else 0


def siguiente_correlativo(registros, anio: int) -> str:
    """
    Siguiente número de acto del año, con formato NNN/YYYY.

    Ej: con 001/2026 .. 005/2026 registrados devuelve '006/2026'.
    """
    sufijo = f"/{anio}"
    numeros = [_numero_acto(r.acto) for r in registros if r.acto and sufijo in r.acto]
    maximo = max(numeros) if numeros else 0
    return f"{maximo + 1:03d}/{anio}"


def a_decimal(valor, por_defecto=None) -> Optional[Decimal]:
    """Convierte números o textos como '1,5' a Decimal; None si no se puede."""
    if valor is None or isinstance(valor, bool):
        return por_defecto
    if isinstance(valor, Decimal):
        return valor
    if isinstance(valor, (int, float)):
        return Decimal(str(valor))
    texto = str(valor).strip().replace(',', '.')
    if not texto:
        return por_defecto
    try:
        numero = Decimal(texto)
    except InvalidOperation:
        return por_defecto
    if not numero.is_finite():
        return por_defecto
    return numero

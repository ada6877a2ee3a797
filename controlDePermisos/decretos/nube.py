"""
Sincronización del conjunto de decretos con la planilla en la nube.

La planilla se expone mediante un Web App de Google Apps Script que recibe
el conjunto COMPLETO de filas en cada envío (no diferencias) y lo devuelve
completo en cada lectura. No hay fusión por registro: el último envío gana.
"""
import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional

import httpx
from django.utils import timezone

from .formato import parsear_fecha_planilla
from .registros import (
    TIPO_FERIADO,
    TIPO_PERMISO,
    DIAS_BASE,
    JORNADA_COMPLETA,
    MATERIA_POR_DEFECTO,
    Empleado,
    RegistroPermiso,
    a_decimal,
)

logger = logging.getLogger(__name__)

# Orden fijo de las 15 columnas de la planilla de decretos
COLUMNAS_PLANILLA = [
    "ID", "Tipo", "Materia", "Acto", "Funcionario", "RUT", "Periodo", "Días",
    "Inicio", "Jornada", "Haber", "Fecha", "Saldo", "RA", "Emite",
]

COLUMNAS_FUNCIONARIOS = ["N°", "Nombres", "Primer Apellido", "Segundo Apellido", "RUT"]


class ErrorSincronizacion(Exception):
    pass


@dataclass
class ResultadoSync:
    exito: bool
    error: Optional[str] = None
    url: Optional[str] = None


# ============================================================
#   CONVERSIÓN REGISTRO <-> FILA
# ============================================================

def _numero(valor):
    # JSON no admite Decimal; los días van en pasos de 0,5 y son exactos en float
    entero = int(valor)
    return entero if entero == valor else float(valor)


def _fecha_iso(fecha):
    return fecha.isoformat() if fecha else ''


def _texto(celda, por_defecto=''):
    if celda is None or celda == '':
        return por_defecto
    if isinstance(celda, float) and celda.is_integer():
        celda = int(celda)
    return str(celda).strip() or por_defecto


def registro_a_fila(registro: RegistroPermiso) -> list:
    return [
        registro.id,
        registro.solicitud_type,
        registro.materia,
        registro.acto,
        registro.funcionario,
        registro.rut,
        registro.periodo,
        _numero(registro.cantidad_dias),
        _fecha_iso(registro.fecha_inicio),
        registro.tipo_jornada,
        _numero(registro.dias_haber),
        _fecha_iso(registro.fecha_decreto),
        _numero(registro.saldo),
        registro.ra,
        registro.emite,
    ]


def registros_a_filas(registros) -> List[list]:
    return [registro_a_fila(r) for r in registros]


def filas_a_registros(filas, ahora=None) -> List[RegistroPermiso]:
    """
    Convierte las filas de la planilla en registros tipados.

    Las celdas llegan con tipos poco confiables (números como texto con coma
    decimal, fechas en formato largo en español), así que cada columna se
    interpreta con su valor por defecto. Las filas sin funcionario se
    descartan en silencio y un ID repetido recibe el sufijo '-<índice>'.
    """
    ahora = ahora or timezone.now()
    marca = int(ahora.timestamp() * 1000)
    anio_actual = str(timezone.localdate().year)

    validas = [
        fila for fila in (filas or [])
        if isinstance(fila, (list, tuple)) and len(fila) > 4 and _texto(fila[4])
    ]
    registros = []
    vistos = set()
    for indice, fila in enumerate(validas):
        fila = list(fila) + [''] * (len(COLUMNAS_PLANILLA) - len(fila))
        id_registro = _texto(fila[0]) or f"cloud-{indice}-{marca}"
        while id_registro in vistos:
            id_registro = f"{id_registro}-{indice}"
        vistos.add(id_registro)
        tipo = TIPO_FERIADO if _texto(fila[1]).upper() == TIPO_FERIADO else TIPO_PERMISO
        registros.append(RegistroPermiso(
            id=id_registro,
            solicitud_type=tipo,
            materia=_texto(fila[2], MATERIA_POR_DEFECTO),
            acto=_texto(fila[3]),
            funcionario=_texto(fila[4]),
            rut=_texto(fila[5]),
            periodo=_texto(fila[6], anio_actual),
            cantidad_dias=a_decimal(fila[7], a_decimal(0)),
            fecha_inicio=parsear_fecha_planilla(fila[8]),
            tipo_jornada=_texto(fila[9], JORNADA_COMPLETA),
            dias_haber=a_decimal(fila[10], DIAS_BASE[TIPO_PERMISO]),
            fecha_decreto=parsear_fecha_planilla(fila[11]),
            ra=_texto(fila[13], 'MGA'),
            emite=_texto(fila[14], 'mga'),
            observaciones='',
            # La planilla viene del más reciente al más antiguo
            creado_en=ahora - timedelta(seconds=indice),
        ))
    return registros


def _separar_nombre(nombre):
    """
    Separa un nombre completo en (nombres, primer apellido, segundo apellido).
    4+ palabras: dos nombres y el resto apellidos; 3: uno de cada; 2: nombre y
    apellido; 1: todo como nombre.
    """
    partes = nombre.split()
    if len(partes) >= 4:
        return ' '.join(partes[:2]), partes[2], ' '.join(partes[3:])
    if len(partes) == 3:
        return partes[0], partes[1], partes[2]
    if len(partes) == 2:
        return partes[0], partes[1], ''
    return nombre, '', ''


def empleados_a_filas(empleados) -> List[list]:
    filas = []
    for indice, empleado in enumerate(empleados, start=1):
        nombres, primer_apellido, segundo_apellido = _separar_nombre(empleado.nombre)
        filas.append([indice, nombres, primer_apellido, segundo_apellido, empleado.rut])
    return filas


def filas_a_empleados(filas) -> List[Empleado]:
    empleados = []
    for fila in filas or []:
        if not isinstance(fila, (list, tuple)) or len(fila) < 2 or not _texto(fila[1]):
            continue
        fila = list(fila) + [''] * (len(COLUMNAS_FUNCIONARIOS) - len(fila))
        nombre = ' '.join(p for p in (_texto(fila[1]), _texto(fila[2]), _texto(fila[3])) if p).upper()
        rut = _texto(fila[4])
        if nombre and rut:
            empleados.append(Empleado(nombre=nombre, rut=rut))
    return sorted(empleados, key=lambda e: e.nombre)


# ============================================================
#   FUENTES DE DATOS
# ============================================================

class FuenteDatos(ABC):
    """Almacenamiento externo del conjunto completo de decretos y funcionarios."""

    @abstractmethod
    def pull(self) -> List[RegistroPermiso]:
        """Devuelve el conjunto remoto. Lanza ErrorSincronizacion si falla."""

    @abstractmethod
    def push(self, registros) -> ResultadoSync:
        """Reemplaza el conjunto remoto por 'registros'. Nunca lanza."""

    @abstractmethod
    def pull_funcionarios(self) -> List[Empleado]:
        pass

    @abstractmethod
    def push_funcionarios(self, empleados) -> ResultadoSync:
        pass

    def generar_documento(self, campos, como_pdf=True) -> ResultadoSync:
        return ResultadoSync(False, error="La fuente de datos no genera documentos")

    def cerrar(self):
        pass


class HojaCalculoRemota(FuenteDatos):
    """Cliente HTTP del Web App de Apps Script."""

    def __init__(self, url, hoja_decretos, hoja_funcionarios='', timeout=15.0, client=None):
        self.url = url
        self.hoja_decretos = hoja_decretos
        self.hoja_funcionarios = hoja_funcionarios
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    @classmethod
    def desde_settings(cls):
        from django.conf import settings
        return cls(
            url=settings.GAS_WEB_APP_URL,
            hoja_decretos=settings.DECRETOS_SHEET_ID,
            hoja_funcionarios=settings.EMPLOYEES_SHEET_ID,
            timeout=settings.DECRETOS_TIMEOUT,
        )

    def cerrar(self):
        """Cierra el cliente HTTP"""
        self._client.close()

    def _respuesta(self, response):
        response.raise_for_status()
        try:
            resultado = response.json()
        except ValueError as e:
            raise ErrorSincronizacion(f"Respuesta no JSON del servidor: {e}") from e
        if not isinstance(resultado, dict) or resultado.get('success') is not True:
            error = resultado.get('error') if isinstance(resultado, dict) else None
            raise ErrorSincronizacion(error or "Respuesta inválida del servidor.")
        return resultado

    def _post(self, payload):
        if not self.url:
            raise ErrorSincronizacion("No se configuró la URL del Web App (GAS_WEB_APP_URL)")
        try:
            # text/plain evita el preflight CORS que Apps Script no responde
            response = self._client.post(
                self.url,
                content=json.dumps(payload, ensure_ascii=False).encode('utf-8'),
                headers={'Content-Type': 'text/plain;charset=utf-8'},
            )
            return self._respuesta(response)
        except httpx.HTTPError as e:
            raise ErrorSincronizacion(f"Error de red: {e}") from e

    def _get(self, params):
        if not self.url:
            raise ErrorSincronizacion("No se configuró la URL del Web App (GAS_WEB_APP_URL)")
        try:
            return self._respuesta(self._client.get(self.url, params=params))
        except httpx.HTTPError as e:
            raise ErrorSincronizacion(f"Error de red: {e}") from e

    def pull(self):
        resultado = self._get({'sheetId': self.hoja_decretos})
        return filas_a_registros(resultado.get('data') or [])

    def push(self, registros):
        try:
            self._post({'sheetId': self.hoja_decretos, 'data': registros_a_filas(registros)})
        except ErrorSincronizacion as e:
            return ResultadoSync(False, error=str(e))
        return ResultadoSync(True)

    def pull_funcionarios(self):
        resultado = self._get({'sheetId': self.hoja_funcionarios, 'type': 'employees'})
        return filas_a_empleados(resultado.get('data') or [])

    def push_funcionarios(self, empleados):
        try:
            self._post({
                'sheetId': self.hoja_funcionarios,
                'type': 'employees',
                'data': empleados_a_filas(empleados),
            })
        except ErrorSincronizacion as e:
            return ResultadoSync(False, error=str(e))
        return ResultadoSync(True)

    def generar_documento(self, campos, como_pdf=True):
        """
        Pide al Web App que copie la plantilla del decreto y reemplace sus
        etiquetas con 'campos'. Devuelve la URL del documento creado.
        """
        try:
            resultado = self._post(campos)
        except ErrorSincronizacion as e:
            return ResultadoSync(False, error=str(e))
        url = resultado.get('url')
        if not url:
            return ResultadoSync(False, error="Respuesta inválida del servidor.")
        if como_pdf and '/edit' in url:
            url = url[:url.index('/edit')] + '/export?format=pdf'
        return ResultadoSync(True, url=url)


class FuenteEnMemoria(FuenteDatos):
    """Planilla simulada en memoria, para desarrollo sin conexión y pruebas."""

    def __init__(self):
        self.filas = []
        self.filas_funcionarios = []
        self.envios = 0
        self.fallas_pendientes = 0
        self.documentos = []

    @classmethod
    def desde_settings(cls):
        return cls()

    def _fallar(self):
        if self.fallas_pendientes > 0:
            self.fallas_pendientes -= 1
            return True
        return False

    def pull(self):
        if self._fallar():
            raise ErrorSincronizacion("Falla simulada")
        return filas_a_registros(json.loads(json.dumps(self.filas)))

    def push(self, registros):
        self.envios += 1
        if self._fallar():
            return ResultadoSync(False, error="Falla simulada")
        self.filas = registros_a_filas(registros)
        return ResultadoSync(True)

    def pull_funcionarios(self):
        if self._fallar():
            raise ErrorSincronizacion("Falla simulada")
        return filas_a_empleados(self.filas_funcionarios)

    def push_funcionarios(self, empleados):
        if self._fallar():
            return ResultadoSync(False, error="Falla simulada")
        self.filas_funcionarios = empleados_a_filas(empleados)
        return ResultadoSync(True)

    def generar_documento(self, campos, como_pdf=True):
        self.documentos.append(dict(campos))
        formato = 'export?format=pdf' if como_pdf else 'edit'
        return ResultadoSync(True, url=f"https://memoria.invalid/documentos/{len(self.documentos)}/{formato}")

    def reiniciar(self):
        self.__init__()


# ============================================================
#   SINCRONIZADOR
# ============================================================

class Sincronizador:
    """
    Envía y recupera el conjunto completo de decretos.

    Si un envío falla y la conexión sigue disponible se programa UN reintento
    pasado 'retraso_reintento' segundos; el reintento no programa otro. El
    reintento pendiente se descarta con cada envío nuevo y al cerrar, así un
    conjunto viejo nunca pisa uno más reciente.
    """

    def __init__(self, fuente, en_linea=None, retraso_reintento=5.0):
        self.fuente = fuente
        self._en_linea = en_linea or (lambda: True)
        self.retraso_reintento = retraso_reintento
        self.sincronizando = False
        self.error = False
        self.ultimo_error = None
        self.ultima_sincronizacion = None
        self._reintento = None
        self._generacion = 0
        self._lock = threading.Lock()

    @classmethod
    def desde_settings(cls):
        from django.conf import settings
        from django.utils.module_loading import import_string

        clase_fuente = import_string(settings.DECRETOS_FUENTE_DATOS)
        return cls(
            fuente=clase_fuente.desde_settings(),
            en_linea=lambda: settings.DECRETOS_NUBE_HABILITADA,
            retraso_reintento=settings.DECRETOS_REINTENTO_SEGUNDOS,
        )

    @property
    def en_linea(self):
        return bool(self._en_linea())

    @property
    def reintento_pendiente(self):
        return self._reintento is not None

    def _marcar_error(self, mensaje):
        self.error = True
        self.ultimo_error = mensaje

    def _marcar_exito(self):
        self.error = False
        self.ultimo_error = None
        self.ultima_sincronizacion = timezone.now()

    def push(self, registros, reintentar=True) -> ResultadoSync:
        # El conjunto nuevo reemplaza al que esperaba reintento
        self.cancelar_reintento()
        return self._enviar(list(registros), reintentar)

    def _enviar(self, registros, reintentar):
        if not self.en_linea:
            logger.warning("Sin conexión: no se envían %s decretos a la nube", len(registros))
            self._marcar_error("Sin conexión a internet")
            return ResultadoSync(False, error="Sin conexión a internet")

        self.sincronizando = True
        try:
            resultado = self.fuente.push(registros)
        finally:
            self.sincronizando = False

        if resultado.exito:
            logger.info("Sincronización exitosa: %s decretos enviados", len(registros))
            self._marcar_exito()
            return resultado

        logger.error("Error sincronizando decretos: %s", resultado.error)
        self._marcar_error(resultado.error)
        if reintentar and self.en_linea:
            self.programar_reintento(registros)
        return resultado

    def pull(self) -> Optional[List[RegistroPermiso]]:
        if not self.en_linea:
            self._marcar_error("Sin conexión a internet")
            return None
        self.sincronizando = True
        try:
            registros = self.fuente.pull()
        except ErrorSincronizacion as e:
            logger.error("Error al recuperar datos de la nube: %s", e)
            self._marcar_error(str(e))
            return None
        finally:
            self.sincronizando = False
        logger.info("Recuperados %s decretos desde la nube", len(registros))
        self._marcar_exito()
        return registros

    def push_funcionarios(self, empleados) -> ResultadoSync:
        if not self.en_linea:
            return ResultadoSync(False, error="Sin conexión a internet")
        resultado = self.fuente.push_funcionarios(list(empleados))
        if not resultado.exito:
            logger.error("Error sincronizando funcionarios: %s", resultado.error)
        return resultado

    def pull_funcionarios(self) -> Optional[List[Empleado]]:
        if not self.en_linea:
            return None
        try:
            return self.fuente.pull_funcionarios()
        except ErrorSincronizacion as e:
            logger.error("Error al recuperar funcionarios de la nube: %s", e)
            return None

    # --- Reintento ---

    def programar_reintento(self, registros):
        with self._lock:
            if self._reintento is not None:
                self._reintento.cancel()
            self._generacion += 1
            temporizador = threading.Timer(
                self.retraso_reintento, self._ejecutar_reintento, args=(registros, self._generacion),
            )
            temporizador.daemon = True
            self._reintento = temporizador
        logger.warning("Reintento de sincronización en %s segundos", self.retraso_reintento)
        temporizador.start()

    def _ejecutar_reintento(self, registros, generacion):
        # Un reintento cancelado o reemplazado puede haber disparado igual
        with self._lock:
            if generacion != self._generacion:
                logger.info("Reintento descartado: hay un envío más reciente")
                return
            self._reintento = None
        if not self.en_linea:
            logger.warning("Reintento descartado: sin conexión")
            return
        self._enviar(registros, reintentar=False)

    def cancelar_reintento(self):
        with self._lock:
            self._generacion += 1
            if self._reintento is not None:
                self._reintento.cancel()
                self._reintento = None

    def cerrar(self):
        self.cancelar_reintento()
        self.fuente.cerrar()

"""
Estado de la aplicación: decretos, funcionarios y pila de deshacer.

Las vistas no modifican los modelos directamente; todo cambio pasa por
EstadoAplicacion, que guarda una instantánea antes de mutar y después
envía el conjunto completo a la nube.
"""
import logging

from django.apps import apps
from django.db import transaction
from django.utils import timezone

from . import registros as reglas
from .exportar import campos_documento
from .models import Decreto, Funcionario, Instantanea
from .nube import ResultadoSync
from .registros import RegistroPermiso

logger = logging.getLogger(__name__)

CAPACIDAD_DESHACER = 10


class RegistroNoEncontrado(Exception):
    pass


class EstadoAplicacion:

    def __init__(self, sincronizador, capacidad_deshacer=CAPACIDAD_DESHACER):
        self.sincronizador = sincronizador
        self.capacidad_deshacer = capacidad_deshacer

    @classmethod
    def actual(cls):
        """Estado ligado al sincronizador del proceso (ver DecretosConfig)."""
        return cls(apps.get_app_config('decretos').sincronizador)

    # ============================================================
    #   CONSULTAS
    # ============================================================

    def registros(self):
        return [d.a_registro() for d in Decreto.objects.all()]

    def funcionarios(self):
        return [f.a_empleado() for f in Funcionario.objects.all()]

    def siguiente_correlativo(self, anio=None):
        anio = anio or timezone.localdate().year
        return reglas.siguiente_correlativo(self.registros(), anio)

    def dias_haber_sugeridos(self, rut, tipo):
        return reglas.dias_haber_sugeridos(self.registros(), rut, tipo)

    def saldo_detectado(self, rut, tipo):
        return reglas.saldo_detectado(self.registros(), rut, tipo)

    def puede_deshacer(self):
        return Instantanea.objects.exists()

    # ============================================================
    #   MUTACIONES DE DECRETOS
    # ============================================================

    def _guardar_instantanea(self):
        Instantanea.objects.create(datos=[r.a_dict() for r in self.registros()])
        # Solo se conservan las últimas 'capacidad_deshacer' instantáneas
        sobrantes = list(Instantanea.objects.values_list('id', flat=True)[self.capacidad_deshacer:])
        if sobrantes:
            Instantanea.objects.filter(id__in=sobrantes).delete()

    def _reemplazar(self, registros):
        Decreto.objects.all().delete()
        Decreto.objects.bulk_create([Decreto.desde_registro(r) for r in registros])

    def _publicar(self):
        return self.sincronizador.push(self.registros())

    def crear_registro(self, datos):
        """Crea un decreto con 'datos' (campos ya validados). Devuelve (registro, resultado_sync)."""
        with transaction.atomic():
            self._guardar_instantanea()
            decreto = Decreto.objects.create(**datos)
        logger.info("Decreto %s creado para %s", decreto.acto, decreto.rut)
        return decreto.a_registro(), self._publicar()

    def actualizar_registro(self, id_registro, datos):
        """Modifica un decreto conservando su id y su fecha de creación."""
        with transaction.atomic():
            decreto = Decreto.objects.select_for_update().filter(pk=id_registro).first()
            if decreto is None:
                raise RegistroNoEncontrado(id_registro)
            self._guardar_instantanea()
            for campo, valor in datos.items():
                if campo in ('id', 'creado_en'):
                    continue
                setattr(decreto, campo, valor)
            decreto.save()
        logger.info("Decreto %s actualizado", id_registro)
        return decreto.a_registro(), self._publicar()

    def eliminar_registro(self, id_registro):
        with transaction.atomic():
            if not Decreto.objects.filter(pk=id_registro).exists():
                raise RegistroNoEncontrado(id_registro)
            self._guardar_instantanea()
            Decreto.objects.filter(pk=id_registro).delete()
        logger.info("Decreto %s eliminado", id_registro)
        return self._publicar()

    def deshacer(self):
        """
        Restaura la instantánea más reciente y la envía a la nube.
        Devuelve None si no hay nada que deshacer.
        """
        with transaction.atomic():
            instantanea = Instantanea.objects.first()
            if instantanea is None:
                return None
            restaurados = [RegistroPermiso.desde_dict(d) for d in instantanea.datos]
            self._reemplazar(restaurados)
            instantanea.delete()
        logger.info("Deshecho el último cambio: %s decretos restaurados", len(restaurados))
        return self._publicar()

    def reemplazar_desde_nube(self):
        """Reemplaza los decretos locales por los de la nube. False si falla la lectura."""
        registros = self.sincronizador.pull()
        if registros is None:
            return False
        with transaction.atomic():
            self._reemplazar(registros)
        return True

    def sincronizar(self):
        return self._publicar()

    def generar_documento(self, id_registro, como_pdf=True):
        """Pide a la nube el decreto completado desde la plantilla."""
        decreto = Decreto.objects.filter(pk=id_registro).first()
        if decreto is None:
            raise RegistroNoEncontrado(id_registro)
        if not self.sincronizador.en_linea:
            return ResultadoSync(False, error="Sin conexión a internet")
        resultado = self.sincronizador.fuente.generar_documento(campos_documento(decreto.a_registro()), como_pdf)
        if not resultado.exito:
            logger.error("No se pudo generar el documento del decreto %s: %s", decreto.acto, resultado.error)
        return resultado

    # ============================================================
    #   FUNCIONARIOS
    # ============================================================

    def agregar_funcionario(self, nombre, rut):
        Funcionario.objects.update_or_create(rut=rut, defaults={'nombre': nombre})
        return self.sincronizador.push_funcionarios(self.funcionarios())

    def eliminar_funcionario(self, rut):
        eliminados, _ = Funcionario.objects.filter(rut=rut).delete()
        if not eliminados:
            raise RegistroNoEncontrado(rut)
        return self.sincronizador.push_funcionarios(self.funcionarios())

    def importar_funcionarios(self):
        """
        Reemplaza la nómina local por la de la nube. Devuelve la cantidad
        importada, o None si la lectura falló. Una nómina remota vacía no
        borra la local.
        """
        empleados = self.sincronizador.pull_funcionarios()
        if empleados is None:
            return None
        unicos = list(_sin_ruts_repetidos(empleados))
        if unicos:
            with transaction.atomic():
                Funcionario.objects.all().delete()
                Funcionario.objects.bulk_create([Funcionario(nombre=e.nombre, rut=e.rut) for e in unicos])
        return len(unicos)


def _sin_ruts_repetidos(empleados):
    vistos = set()
    for empleado in empleados:
        if empleado.rut not in vistos:
            vistos.add(empleado.rut)
            yield empleado

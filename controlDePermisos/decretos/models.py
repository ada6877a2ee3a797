import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone

from .registros import (
    TIPO_PERMISO,
    TIPO_FERIADO,
    JORNADA_COMPLETA,
    RegistroPermiso,
    Empleado,
)


def _nuevo_id():
    return str(uuid.uuid4())


def _anio_actual():
    return str(timezone.localdate().year)


class Funcionario(models.Model):
    nombre = models.CharField(max_length=150)
    rut = models.CharField(max_length=15, unique=True)

    class Meta:
        ordering = ['nombre']

    def a_empleado(self):
        return Empleado(nombre=self.nombre, rut=self.rut)

    def __str__(self):
        return f"{self.nombre} ({self.rut})"


class Decreto(models.Model):
    """
    Acto administrativo que otorga un Permiso Administrativo (PA) o un
    Feriado Legal (FL).

    El saldo no se guarda: es siempre dias_haber - cantidad_dias, y el saldo
    vigente de un funcionario es el del decreto más reciente de su tipo.
    """
    TIPOS = [
        (TIPO_PERMISO, 'Permiso Administrativo'),
        (TIPO_FERIADO, 'Feriado Legal'),
    ]

    id = models.CharField(max_length=64, primary_key=True, default=_nuevo_id, editable=False)
    solicitud_type = models.CharField(max_length=2, choices=TIPOS, default=TIPO_PERMISO)
    materia = models.CharField(max_length=100, default='Decreto Exento')
    acto = models.CharField(max_length=20, blank=True, default='')
    funcionario = models.CharField(max_length=150)
    rut = models.CharField(max_length=15, db_index=True)
    periodo = models.CharField(max_length=10, default=_anio_actual)
    cantidad_dias = models.DecimalField(max_digits=5, decimal_places=1, default=Decimal('1'))
    fecha_inicio = models.DateField(null=True, blank=True)
    tipo_jornada = models.CharField(max_length=30, default=JORNADA_COMPLETA)
    dias_haber = models.DecimalField(max_digits=5, decimal_places=1, default=Decimal('6'))
    fecha_decreto = models.DateField(null=True, blank=True)
    ra = models.CharField(max_length=20, default='MGA')
    emite = models.CharField(max_length=20, default='mga')
    observaciones = models.TextField(blank=True, default='')
    creado_en = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = "Decreto"
        verbose_name_plural = "Decretos"
        ordering = ['-creado_en']

    @property
    def saldo(self):
        return self.dias_haber - self.cantidad_dias

    def es_negativo(self):
        return self.saldo < 0

    def a_registro(self):
        return RegistroPermiso(
            id=self.id,
            solicitud_type=self.solicitud_type,
            materia=self.materia,
            acto=self.acto,
            funcionario=self.funcionario,
            rut=self.rut,
            periodo=self.periodo,
            cantidad_dias=self.cantidad_dias,
            fecha_inicio=self.fecha_inicio,
            tipo_jornada=self.tipo_jornada,
            dias_haber=self.dias_haber,
            fecha_decreto=self.fecha_decreto,
            ra=self.ra,
            emite=self.emite,
            observaciones=self.observaciones,
            creado_en=self.creado_en,
        )

    @classmethod
    def desde_registro(cls, registro):
        return cls(
            id=registro.id,
            solicitud_type=registro.solicitud_type,
            materia=registro.materia,
            acto=registro.acto,
            funcionario=registro.funcionario,
            rut=registro.rut,
            periodo=registro.periodo,
            cantidad_dias=registro.cantidad_dias,
            fecha_inicio=registro.fecha_inicio,
            tipo_jornada=registro.tipo_jornada,
            dias_haber=registro.dias_haber,
            fecha_decreto=registro.fecha_decreto,
            ra=registro.ra,
            emite=registro.emite,
            observaciones=registro.observaciones,
            creado_en=registro.creado_en,
        )

    def __str__(self):
        return f"{self.solicitud_type} {self.acto} - {self.funcionario}"


class DiaFeriado(models.Model):
    fecha = models.DateField(unique=True)
    descripcion = models.CharField(max_length=100)

    class Meta:
        ordering = ['-fecha']

    def __str__(self):
        return f"{self.fecha.strftime('%d/%m/%Y')} - {self.descripcion}"


class Instantanea(models.Model):
    """Copia completa del conjunto de decretos, guardada antes de cada cambio."""
    creada_en = models.DateTimeField(default=timezone.now)
    datos = models.JSONField(default=list)

    class Meta:
        ordering = ['-id']

    def __str__(self):
        return f"Instantánea {self.creada_en:%d/%m/%Y %H:%M:%S} ({len(self.datos)} decretos)"

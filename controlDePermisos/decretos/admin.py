from django.contrib import admin
from .models import (
    Decreto,
    Funcionario,
    DiaFeriado,
    Instantanea,
)


# Los cambios hechos aquí no pasan por la pila de deshacer ni se envían a la nube
class DecretoAdmin(admin.ModelAdmin):
    list_display = ('acto', 'solicitud_type', 'funcionario', 'rut', 'cantidad_dias', 'dias_haber', 'saldo', 'fecha_inicio')
    list_filter = ('solicitud_type', 'periodo', 'tipo_jornada')
    search_fields = ('acto', 'funcionario', 'rut')
    date_hierarchy = 'fecha_inicio'


class FuncionarioAdmin(admin.ModelAdmin):
    list_display = ('nombre', 'rut')
    search_fields = ('nombre', 'rut')


class InstantaneaAdmin(admin.ModelAdmin):
    list_display = ('id', 'creada_en', 'cantidad_decretos')
    readonly_fields = ('creada_en', 'datos')

    @admin.display(description='Decretos')
    def cantidad_decretos(self, obj):
        return len(obj.datos)


# Registro de los modelos en el sitio de administración
admin.site.register(Decreto, DecretoAdmin)
admin.site.register(Funcionario, FuncionarioAdmin)
admin.site.register(DiaFeriado)
admin.site.register(Instantanea, InstantaneaAdmin)

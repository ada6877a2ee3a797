from django.urls import path
from . import views

app_name = 'decretos'

urlpatterns = [
    # 1. Panel y listado
    path('', views.dashboard, name='dashboard'),
    path('listado/', views.listado, name='listado'),
    path('calendario/', views.calendario, name='calendario'),

    # 2. Decretos
    path('nuevo/', views.crear_decreto, name='crear_decreto'),
    path('<str:id_registro>/editar/', views.editar_decreto, name='editar_decreto'),
    path('<str:id_registro>/eliminar/', views.eliminar_decreto, name='eliminar_decreto'),
    path('<str:id_registro>/pdf/', views.exportar_pdf, name='exportar_pdf'),
    path('<str:id_registro>/documento/', views.documento_nube, name='documento_nube'),
    path('deshacer/', views.deshacer, name='deshacer'),

    # 3. Sincronización
    path('sincronizar/', views.sincronizar, name='sincronizar'),
    path('recargar/', views.recargar, name='recargar'),
    path('api/saldo/', views.saldo_ajax, name='saldo_ajax'),

    # 4. Exportación
    path('exportar/excel/', views.exportar_excel, name='exportar_excel'),

    # 5. Funcionarios
    path('funcionarios/', views.funcionarios, name='funcionarios'),
    path('funcionarios/importar/', views.importar_funcionarios, name='importar_funcionarios'),
    path('funcionarios/<str:rut>/eliminar/', views.eliminar_funcionario, name='eliminar_funcionario'),

    # 6. Feriados
    path('feriados/', views.feriados, name='feriados'),
    path('feriados/<int:feriado_id>/eliminar/', views.eliminar_feriado, name='eliminar_feriado'),
]

"""
Tests de las vistas con el cliente de Django
"""
from datetime import date
from unittest.mock import patch

import httpx
import pytest
from django.contrib.auth.models import Group
from django.contrib.messages import get_messages
from django.urls import reverse
from django.utils import timezone

from decretos.models import Decreto, DiaFeriado, Funcionario
from decretos.nube import registros_a_filas
from decretos.views import descargar_feriados, es_editor
from decretos.tests.fabricas import formulario, registro

pytestmark = pytest.mark.django_db


def mensajes(response):
    return [str(m) for m in get_messages(response.wsgi_request)]


class TestPermisos:

    def test_anonimo_va_al_login(self, client):
        response = client.get(reverse('decretos:listado'))
        assert response.status_code == 302
        assert response.url.startswith('/login/')

    def test_lector_puede_ver(self, cliente_lector):
        assert cliente_lector.get(reverse('decretos:dashboard')).status_code == 200
        assert cliente_lector.get(reverse('decretos:listado')).status_code == 200
        assert cliente_lector.get(reverse('decretos:calendario')).status_code == 200

    def test_lector_no_puede_crear(self, cliente_lector):
        response = cliente_lector.post(reverse('decretos:crear_decreto'), formulario())
        assert response.status_code == 302
        assert Decreto.objects.count() == 0

    def test_grupo_editores(self, django_user_model):
        usuario = django_user_model.objects.create_user(username='ana', password='clave')
        assert es_editor(usuario) is False
        usuario.groups.add(Group.objects.create(name='Editores'))
        assert es_editor(usuario) is True


class TestDecretos:

    def test_formulario_nuevo_precargado(self, cliente_editor):
        response = cliente_editor.get(reverse('decretos:crear_decreto'), {'tipo': 'FL'})
        datos = response.context['datos']
        assert datos['solicitud_type'] == 'FL'
        assert datos['dias_haber'] == '15'
        assert datos['acto'] == f"001/{timezone.localdate().year}"

    def test_formulario_con_funcionario_usa_su_saldo(self, cliente_editor):
        Funcionario.objects.create(nombre='MARÍA SOLEDAD JARRIN ROJAS', rut='14.735.535-1')
        cliente_editor.post(reverse('decretos:crear_decreto'), formulario(cantidad_dias='2'))
        response = cliente_editor.get(reverse('decretos:crear_decreto'), {'tipo': 'PA', 'rut': '14.735.535-1'})
        datos = response.context['datos']
        assert datos['funcionario'] == 'MARÍA SOLEDAD JARRIN ROJAS'
        assert datos['dias_haber'] == '4.0'

    def test_crear(self, cliente_editor, fuente):
        response = cliente_editor.post(reverse('decretos:crear_decreto'), formulario())

        assert response.status_code == 302
        assert response.url == reverse('decretos:listado')
        decreto = Decreto.objects.get()
        assert decreto.rut == '14.735.535-1'
        assert len(fuente.filas) == 1
        assert 'Decreto 001/2026 creado y sincronizado.' in mensajes(response)

    def test_crear_sin_acto_asigna_correlativo(self, cliente_editor):
        cliente_editor.post(reverse('decretos:crear_decreto'), formulario())
        cliente_editor.post(reverse('decretos:crear_decreto'), formulario(acto=''))
        assert sorted(Decreto.objects.values_list('acto', flat=True)) == ['001/2026', '002/2026']

    def test_crear_invalido_muestra_errores(self, cliente_editor):
        response = cliente_editor.post(reverse('decretos:crear_decreto'), formulario(rut='14.735.535-2'))
        assert response.status_code == 200
        assert Decreto.objects.count() == 0
        assert any('RUT' in m for m in mensajes(response))

    def test_crear_en_feriado(self, cliente_editor):
        DiaFeriado.objects.create(fecha=date(2026, 1, 6), descripcion='Feriado de prueba')
        response = cliente_editor.post(reverse('decretos:crear_decreto'), formulario())
        assert response.status_code == 200
        assert "La fecha de inicio debe ser un día hábil." in mensajes(response)

    def test_saldo_negativo_advierte(self, cliente_editor):
        response = cliente_editor.post(reverse('decretos:crear_decreto'), formulario(cantidad_dias='7'))
        assert any('negativo' in m for m in mensajes(response))

    @patch('decretos.nube.threading.Timer')
    def test_falla_de_sincronizacion_se_informa(self, Timer, cliente_editor, fuente):
        fuente.fallas_pendientes = 1
        response = cliente_editor.post(reverse('decretos:crear_decreto'), formulario())
        assert Decreto.objects.count() == 1
        assert any('no se pudieron sincronizar' in m for m in mensajes(response))

    def test_editar(self, cliente_editor):
        cliente_editor.post(reverse('decretos:crear_decreto'), formulario())
        decreto = Decreto.objects.get()

        response = cliente_editor.get(reverse('decretos:editar_decreto', args=[decreto.id]))
        assert response.context['datos']['cantidad_dias'] == '0.5'

        cliente_editor.post(reverse('decretos:editar_decreto', args=[decreto.id]), formulario(cantidad_dias='1'))
        decreto.refresh_from_db()
        assert str(decreto.cantidad_dias) == '1.0'

    def test_editar_inexistente(self, cliente_editor):
        assert cliente_editor.get(reverse('decretos:editar_decreto', args=['no-existe'])).status_code == 404

    def test_eliminar_y_deshacer(self, cliente_editor):
        cliente_editor.post(reverse('decretos:crear_decreto'), formulario())
        decreto = Decreto.objects.get()

        assert cliente_editor.get(reverse('decretos:eliminar_decreto', args=[decreto.id])).status_code == 200
        cliente_editor.post(reverse('decretos:eliminar_decreto', args=[decreto.id]))
        assert Decreto.objects.count() == 0

        response = cliente_editor.post(reverse('decretos:deshacer'))
        assert Decreto.objects.filter(pk=decreto.id).exists()
        assert "Se deshizo el último cambio." in mensajes(response)

    def test_deshacer_sin_cambios(self, cliente_editor):
        response = cliente_editor.post(reverse('decretos:deshacer'))
        assert "No hay cambios para deshacer." in mensajes(response)

    def test_deshacer_solo_por_post(self, cliente_editor):
        assert cliente_editor.get(reverse('decretos:deshacer')).status_code == 405


class TestListado:

    def test_pestanas_y_paginacion(self, cliente_editor):
        Decreto.objects.bulk_create([
            Decreto.desde_registro(registro(id=str(n), acto=f"{n:03d}/2026", minuto=n)) for n in range(1, 18)
        ] + [Decreto.desde_registro(registro(id='fl', tipo='FL', acto='100/2026', minuto=30))])

        response = cliente_editor.get(reverse('decretos:listado'))
        assert response.context['conteos'] == {'ALL': 18, 'PA': 17, 'FL': 1}
        assert len(response.context['pagina'].object_list) == 15
        assert response.context['pagina'].object_list[0].id == 'fl'

        response = cliente_editor.get(reverse('decretos:listado'), {'tab': 'PA', 'page': 2})
        assert len(response.context['pagina'].object_list) == 2

    def test_busqueda(self, cliente_editor):
        Decreto.desde_registro(registro()).save(force_insert=True)
        response = cliente_editor.get(reverse('decretos:listado'), {'q': 'jarrin'})
        assert response.context['total_filtrados'] == 1


class TestSincronizacion:

    def test_sincronizar(self, cliente_editor, fuente):
        Decreto.objects.create(id='r1', funcionario='ANA', rut='12.345.678-5')
        response = cliente_editor.post(reverse('decretos:sincronizar'))
        assert len(fuente.filas) == 1
        assert "Datos enviados a la nube." in mensajes(response)

    @patch('decretos.nube.threading.Timer')
    def test_sincronizar_fallido(self, Timer, cliente_editor, fuente):
        fuente.fallas_pendientes = 1
        response = cliente_editor.post(reverse('decretos:sincronizar'))
        assert any('No se pudo sincronizar' in m for m in mensajes(response))

    def test_recargar(self, cliente_editor, fuente):
        fuente.filas = registros_a_filas([registro(id='nube')])
        response = cliente_editor.post(reverse('decretos:recargar'))
        assert list(Decreto.objects.values_list('id', flat=True)) == ['nube']
        assert "Datos recargados desde la nube." in mensajes(response)

    def test_recargar_fallido_conserva_locales(self, cliente_editor, fuente):
        Decreto.objects.create(id='local', funcionario='ANA', rut='12.345.678-5')
        fuente.fallas_pendientes = 1
        response = cliente_editor.post(reverse('decretos:recargar'))
        assert list(Decreto.objects.values_list('id', flat=True)) == ['local']
        assert any('Se conservan los datos locales' in m for m in mensajes(response))

    def test_next_externo_se_ignora(self, cliente_editor):
        response = cliente_editor.post(reverse('decretos:sincronizar'), {'next': 'https://otro.invalid/'})
        assert response.url == reverse('decretos:listado')

    def test_saldo_ajax(self, cliente_lector):
        Decreto.desde_registro(registro(cantidad='2', haber='6')).save(force_insert=True)
        response = cliente_lector.get(reverse('decretos:saldo_ajax'), {'rut': '147355351', 'tipo': 'PA'})
        datos = response.json()
        assert datos['rut'] == '14.735.535-1'
        assert datos['dias_haber'] == 4.0
        assert datos['saldo_detectado'] == 4.0

    def test_saldo_ajax_sin_historial(self, cliente_lector):
        datos = cliente_lector.get(reverse('decretos:saldo_ajax'), {'rut': '12.345.678-5', 'tipo': 'FL'}).json()
        assert datos['dias_haber'] == 15.0
        assert datos['saldo_detectado'] is None

    def test_saldo_ajax_errores(self, cliente_lector):
        assert cliente_lector.get(reverse('decretos:saldo_ajax')).status_code == 400
        assert cliente_lector.get(reverse('decretos:saldo_ajax'), {'rut': '1-9', 'tipo': 'XX'}).status_code == 400


class TestExportacion:

    def test_excel(self, cliente_lector):
        Decreto.objects.create(id='r1', funcionario='ANA', rut='12.345.678-5', acto='001/2026')
        response = cliente_lector.get(reverse('decretos:exportar_excel'), {'tab': 'PA'})
        assert response['Content-Type'].startswith('application/vnd.openxmlformats')
        assert 'decretos_pa_' in response['Content-Disposition']

    def test_pdf(self, cliente_lector):
        Decreto.objects.create(id='r1', funcionario='ANA PÉREZ', rut='12.345.678-5', acto='001/2026')
        response = cliente_lector.get(reverse('decretos:exportar_pdf', args=['r1']))
        assert response['Content-Type'] == 'application/pdf'
        assert response.content.startswith(b'%PDF')

    def test_documento_nube_redirige(self, cliente_lector, fuente):
        Decreto.objects.create(id='r1', funcionario='ANA PÉREZ', rut='12.345.678-5', acto='001/2026')
        response = cliente_lector.get(reverse('decretos:documento_nube', args=['r1']))
        assert response.status_code == 302
        assert response.url.endswith('export?format=pdf')
        assert fuente.documentos[0]['FUNCIONARIO'] == 'ANA PÉREZ'

    def test_documento_nube_inexistente(self, cliente_lector):
        response = cliente_lector.get(reverse('decretos:documento_nube', args=['no-existe']))
        assert response.url == reverse('decretos:listado')


class TestFuncionarios:

    def test_agregar(self, cliente_editor, fuente):
        cliente_editor.post(reverse('decretos:funcionarios'), {'nombre': 'ana pérez', 'rut': '123456785'})
        funcionario = Funcionario.objects.get()
        assert funcionario.nombre == 'ANA PÉREZ'
        assert funcionario.rut == '12.345.678-5'
        assert fuente.filas_funcionarios[0][-1] == '12.345.678-5'

    def test_agregar_rut_invalido(self, cliente_editor):
        response = cliente_editor.post(reverse('decretos:funcionarios'), {'nombre': 'ANA', 'rut': '12.345.678-0'})
        assert not Funcionario.objects.exists()
        assert any('no es válido' in m for m in mensajes(response))

    def test_lector_no_agrega(self, cliente_lector):
        cliente_lector.post(reverse('decretos:funcionarios'), {'nombre': 'ANA', 'rut': '12.345.678-5'})
        assert not Funcionario.objects.exists()

    def test_busqueda(self, cliente_lector):
        Funcionario.objects.create(nombre='ANA PÉREZ', rut='12.345.678-5')
        Funcionario.objects.create(nombre='LUIS ROJAS', rut='11.111.111-1')
        response = cliente_lector.get(reverse('decretos:funcionarios'), {'q': '11.111'})
        assert [f.nombre for f in response.context['funcionarios']] == ['LUIS ROJAS']

    def test_eliminar(self, cliente_editor):
        Funcionario.objects.create(nombre='ANA PÉREZ', rut='12.345.678-5')
        cliente_editor.post(reverse('decretos:eliminar_funcionario', args=['12.345.678-5']))
        assert not Funcionario.objects.exists()

    def test_importar(self, cliente_editor, fuente):
        fuente.filas_funcionarios = [[1, 'ANA', 'PÉREZ', '', '12.345.678-5']]
        response = cliente_editor.post(reverse('decretos:importar_funcionarios'))
        assert Funcionario.objects.get().nombre == 'ANA PÉREZ'
        assert "Se importaron 1 funcionarios desde la nube." in mensajes(response)


class TestFeriados:

    @patch('decretos.views.descargar_feriados', return_value=0)
    def test_lista_del_anio(self, descargar, cliente_editor):
        DiaFeriado.objects.create(fecha=date(2026, 9, 18), descripcion='Independencia Nacional')
        DiaFeriado.objects.create(fecha=date(2025, 9, 18), descripcion='Independencia Nacional')
        response = cliente_editor.get(reverse('decretos:feriados'), {'anio': '2026'})
        assert [f.fecha for f in response.context['feriados']] == [date(2026, 9, 18)]
        descargar.assert_not_called()

    @patch('decretos.views.descargar_feriados', return_value=3)
    def test_anio_vacio_se_descarga(self, descargar, cliente_editor):
        response = cliente_editor.get(reverse('decretos:feriados'), {'anio': '2027'})
        descargar.assert_called_once_with(2027)
        assert "Se descargaron 3 feriados para el año 2027." in mensajes(response)

    @patch('decretos.views.descargar_feriados', side_effect=httpx.ConnectError('sin red'))
    def test_descarga_fallida_se_informa(self, descargar, cliente_editor):
        response = cliente_editor.get(reverse('decretos:feriados'), {'anio': '2027'})
        assert response.status_code == 200
        assert any('No se pudieron descargar' in m for m in mensajes(response))

    @patch('decretos.views.descargar_feriados', return_value=0)
    def test_agregar_y_eliminar(self, descargar, cliente_editor):
        cliente_editor.post(reverse('decretos:feriados'), {'fecha': '2026-06-21', 'descripcion': 'Pueblos Indígenas'})
        feriado = DiaFeriado.objects.get()
        response = cliente_editor.post(reverse('decretos:feriados'), {'fecha': '2026-06-21', 'descripcion': 'Repetido'})
        assert 'Ya existe un feriado en esta fecha.' in mensajes(response)

        cliente_editor.post(reverse('decretos:eliminar_feriado', args=[feriado.id]))
        assert not DiaFeriado.objects.exists()

    def test_descargar_feriados(self):
        def transporte(request):
            assert request.url.path == '/api/v3/PublicHolidays/2026/CL'
            return httpx.Response(200, json=[
                {'date': '2026-01-01', 'localName': 'Año Nuevo', 'name': "New Year's Day"},
                {'date': '2026-05-21', 'localName': 'Día de las Glorias Navales'},
            ])
        DiaFeriado.objects.create(fecha=date(2026, 1, 1), descripcion='Año Nuevo')

        creados = descargar_feriados(2026, client=httpx.Client(transport=httpx.MockTransport(transporte)))
        assert creados == 1
        assert DiaFeriado.objects.count() == 2

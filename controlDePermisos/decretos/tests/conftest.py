import pytest
from django.apps import apps


@pytest.fixture(autouse=True)
def sincronizador():
    """Sincronizador del proceso con la nube en memoria vacía y sin errores."""
    sincronizador = apps.get_app_config('decretos').sincronizador
    sincronizador.cancelar_reintento()
    sincronizador.fuente.reiniciar()
    sincronizador.error = False
    sincronizador.ultimo_error = None
    sincronizador.ultima_sincronizacion = None
    yield sincronizador
    sincronizador.cancelar_reintento()


@pytest.fixture
def fuente(sincronizador):
    return sincronizador.fuente


@pytest.fixture
def editor(django_user_model):
    return django_user_model.objects.create_user(username='editor', password='clave', is_staff=True)


@pytest.fixture
def cliente_editor(client, editor):
    client.force_login(editor)
    return client


@pytest.fixture
def cliente_lector(client, django_user_model):
    lector = django_user_model.objects.create_user(username='lector', password='clave')
    client.force_login(lector)
    return client

import atexit

from django.apps import AppConfig


class DecretosConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'decretos'
    verbose_name = 'Permisos Administrativos y Feriados Legales'

    sincronizador = None

    def ready(self):
        from .nube import Sincronizador

        # Un único sincronizador por proceso: su reintento pendiente vive
        # mientras viva el proceso y se cancela al terminar.
        self.sincronizador = Sincronizador.desde_settings()
        atexit.register(self.sincronizador.cerrar)

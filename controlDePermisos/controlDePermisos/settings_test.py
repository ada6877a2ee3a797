# Configuración usada por pytest: SQLite en memoria y nube en memoria.

from .settings import *  # noqa: F401,F403

SECRET_KEY = 'clave-solo-para-pruebas'
DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

GAS_WEB_APP_URL = 'https://nube.invalid/exec'
DECRETOS_SHEET_ID = 'hoja-decretos'
EMPLOYEES_SHEET_ID = 'hoja-funcionarios'
DECRETOS_FUENTE_DATOS = 'decretos.nube.FuenteEnMemoria'
DECRETOS_REINTENTO_SEGUNDOS = 0.01
DECRETOS_NUBE_HABILITADA = True

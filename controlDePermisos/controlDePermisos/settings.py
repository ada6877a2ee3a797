# controlDePermisos/settings.py

import os
from pathlib import Path
from django.core.management.utils import get_random_secret_key

# Directorio que contiene manage.py
BASE_DIR = Path(__file__).resolve().parent.parent

# ==============================================================================
# ⚠️ ADVERTENCIA: SEGURIDAD
# ==============================================================================
SECRET_KEY = os.getenv('DJANGO_SECRET_KEY') or get_random_secret_key()
DEBUG = os.getenv('DJANGO_DEBUG', '1') == '1'
ALLOWED_HOSTS = os.getenv('DJANGO_ALLOWED_HOSTS', '*').split(',')

# ==============================================================================
# APLICACIONES (APPS)
# ==============================================================================

INSTALLED_APPS = [
    # Core de Django (debe ir primero)
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # Aplicaciones del proyecto
    'decretos',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'controlDePermisos.urls'
WSGI_APPLICATION = 'controlDePermisos.wsgi.application'

# ==============================================================================
# PLANTILLAS (TEMPLATES)
# ==============================================================================

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [os.path.join(BASE_DIR, 'templates')],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

# ==============================================================================
# BASE DE DATOS (MySQL)
# ==============================================================================

DATABASES = {
    'default': {
        'ENGINE': os.getenv('DB_ENGINE', 'django.db.backends.mysql'),
        'NAME': os.getenv('DB_NAME', 'permisosMunicipales'),
        'USER': os.getenv('DB_USER', 'root'),
        'PASSWORD': os.getenv('DB_PASSWORD', ''),
        'HOST': os.getenv('DB_HOST', '127.0.0.1'),
        'PORT': os.getenv('DB_PORT', '3306'),
        'OPTIONS': {
            'init_command': "SET sql_mode='STRICT_TRANS_TABLES'",
        }
    }
}


# ==============================================================================
# AUTENTICACIÓN Y CONTRASEÑAS
# ==============================================================================

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',},
]

LOGIN_URL = '/login/'
LOGIN_REDIRECT_URL = '/decretos/'
LOGOUT_REDIRECT_URL = '/login/'


# ==============================================================================
# INTERNACIONALIZACIÓN Y LOCALIZACIÓN
# ==============================================================================

LANGUAGE_CODE = 'es-cl'
TIME_ZONE = 'America/Santiago'
USE_I18N = True
USE_TZ = True


# ==============================================================================
# ARCHIVOS ESTÁTICOS (STATIC FILES)
# ==============================================================================

STATIC_URL = 'static/'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# ==============================================================================
# REGISTRO (LOGGING)
# ==============================================================================

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'decretos': {
            'handlers': ['console'],
            'level': os.getenv('DJANGO_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}


# ==============================================================================
# SINCRONIZACIÓN CON LA NUBE (Google Apps Script)
# ==============================================================================

# URL del Web App que expone las planillas de decretos y funcionarios
GAS_WEB_APP_URL = os.getenv('GAS_WEB_APP_URL', '')

# ID de la planilla de decretos
DECRETOS_SHEET_ID = os.getenv('DECRETOS_SHEET_ID', '')

# ID de la planilla de funcionarios
EMPLOYEES_SHEET_ID = os.getenv('EMPLOYEES_SHEET_ID', '')

# Segundos máximos de espera por respuesta del Web App
DECRETOS_TIMEOUT = float(os.getenv('DECRETOS_TIMEOUT', '15'))

# Un único reintento, a los 5 segundos, si el envío falla
DECRETOS_REINTENTO_SEGUNDOS = float(os.getenv('DECRETOS_REINTENTO_SEGUNDOS', '5'))

# Estado de conectividad informado ('0' = modo offline, no se envía nada)
DECRETOS_NUBE_HABILITADA = os.getenv('DECRETOS_NUBE_HABILITADA', '1') == '1'

# Implementación de la fuente de datos externa (intercambiable)
DECRETOS_FUENTE_DATOS = os.getenv('DECRETOS_FUENTE_DATOS', 'decretos.nube.HojaCalculoRemota')

# API pública de feriados (se descargan los de Chile)
FERIADOS_API_URL = 'https://date.nager.at/api/v3/PublicHolidays/{anio}/CL'

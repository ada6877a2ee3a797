from django.contrib import admin
from django.urls import path, include
from django.contrib.auth import views as auth_views
from django.views.generic import RedirectView

urlpatterns = [
    # 1. Administración de Django
    path('admin/', admin.site.urls),

    # 2. Login y Logout
    path('login/', auth_views.LoginView.as_view(template_name='decretos/login.html'), name='login'),
    path('logout/', auth_views.LogoutView.as_view(next_page='/login/'), name='logout'),

    # 3. Módulo principal de decretos (namespace 'decretos')
    path('decretos/', include('decretos.urls', namespace='decretos')),

    # 4. La raíz redirige al login
    path('', RedirectView.as_view(pattern_name='login', permanent=False), name='root_redirect'),
]

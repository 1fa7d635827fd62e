# config/urls.py

from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static
from django.views.generic import RedirectView

urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # Autenticação (login/logout do Django)
    path('contas/', include('django.contrib.auth.urls')),

    # Aplicações principais
    path('', include('apps.core.urls')),
    path('', include('apps.painel.urls')),
    path('board/', include('apps.board.urls')),

    # Redirecionamentos úteis
    path('painel/', RedirectView.as_view(pattern_name='painel:painel', permanent=False)),
]

# Servir arquivos estáticos em desenvolvimento
if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)

    # Debug Toolbar se disponível
    if 'debug_toolbar' in settings.INSTALLED_APPS:
        import debug_toolbar

        urlpatterns = [
            path('__debug__/', include(debug_toolbar.urls)),
        ] + urlpatterns

# Customizar títulos do admin
admin.site.site_header = 'Fluxo Board Admin'
admin.site.site_title = 'Fluxo Board'
admin.site.index_title = 'Administração do Sistema'

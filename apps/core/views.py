# apps/core/views.py

import logging

from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET

from apps import __version__

logger = logging.getLogger(__name__)


@require_GET
def health_check(request):
    """
    Health check para monitoramento
    Verifica banco de dados e cache
    """
    try:
        # Verificar conexão com banco
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')

        # Verificar cache (Redis em produção)
        cache.set('health_check', 'ok', 60)
        if cache.get('health_check') != 'ok':
            raise RuntimeError('cache não respondeu')

        status = {
            'status': 'healthy',
            'database': 'ok',
            'cache': 'ok',
            'timestamp': timezone.now().isoformat(),
            'version': __version__
        }

        return JsonResponse(status)

    except Exception as e:
        logger.error(f"❌ Health check falhou: {e}")
        status = {
            'status': 'unhealthy',
            'error': str(e),
            'timestamp': timezone.now().isoformat(),
            'version': __version__
        }

        return JsonResponse(status, status=503)

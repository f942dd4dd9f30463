import logging

from django.http import JsonResponse
from django.db import connection, DatabaseError

logger = logging.getLogger(__name__)


def health_check(request):
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError:
        logger.exception("Health check failed: database unreachable")
        return JsonResponse(
            {"status": "DOWN", "message": "Database unavailable", "database": "error"},
            status=503,
        )
    return JsonResponse({"status": "UP", "message": "Server is healthy", "database": "ok"})

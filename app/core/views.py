"""
Core views providing infrastructure endpoints.

These views are not part of the notification domain but are needed by
container orchestration and monitoring.
"""

from django.db import connection
from django.db.utils import DatabaseError
from django.http import JsonResponse


def health_check(request):
    """
    Health check endpoint for liveness/readiness probes.

    Returns:
        JsonResponse with status and database connectivity:
        - 200 {"status": "healthy", "database": "connected"}
        - 503 {"status": "unhealthy", "database": "disconnected"}
    """
    health_status = {"status": "healthy", "database": "connected"}

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except DatabaseError:
        health_status = {"status": "unhealthy", "database": "disconnected"}
        return JsonResponse(health_status, status=503)

    return JsonResponse(health_status)

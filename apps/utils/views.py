# apps/utils/views.py
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from django.conf import settings


class ServerInfoView(APIView):
    permission_classes = [AllowAny]

    def get(self, request):
        return Response({
            "app_name": settings.PROJECT_NAME,
            "version": settings.SPECTACULAR_SETTINGS["VERSION"],
            "debug": settings.DEBUG,
            "auth_required": settings.API_AUTH_REQUIRED,
            "low_stock_threshold": settings.LOW_STOCK_THRESHOLD,
        })

"""Authentication API views (JWT)."""

import logging

from django.core.exceptions import ImproperlyConfigured
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from api.v1.serializers import CustomTokenObtainPairSerializer, MeSerializer

logger = logging.getLogger("salesflow")


class SafeScopedRateThrottle(ScopedRateThrottle):
    """Scoped throttle that falls back to a strict default if scope config is missing."""

    def get_rate(self):
        try:
            return super().get_rate()
        except ImproperlyConfigured:
            logger.warning("Throttle scope '%s' not configured, applying strict default 5/min.", self.scope)
            return "5/min"


class LoginTokenObtainPairView(TokenObtainPairView):
    """POST /api/v1/auth/token/ -- exchange email + password for a JWT pair."""

    serializer_class = CustomTokenObtainPairSerializer
    throttle_classes = [SafeScopedRateThrottle]
    throttle_scope = "auth_login"


class LoginTokenRefreshView(TokenRefreshView):
    """POST /api/v1/auth/token/refresh/"""

    throttle_classes = [SafeScopedRateThrottle]
    throttle_scope = "auth_refresh"


class MeView(APIView):
    """GET /api/v1/auth/me/ -- return the authenticated user's profile."""

    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(MeSerializer(request.user).data)

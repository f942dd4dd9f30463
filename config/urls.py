from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

urlpatterns = [
    path('admin/', admin.site.urls),

    # Core Apps
    path('api/', include('apps.catalog.urls')),
    path('api/', include('apps.orders.urls')),
    path('api/reports/', include('apps.analytics.urls')),
    path('api/', include('apps.utils.urls')),

    # Auth (only enforced when API_AUTH_REQUIRED is on)
    path('api/auth/token/', TokenObtainPairView.as_view(), name='token-obtain'),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token-refresh'),

    # OpenAPI
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
]

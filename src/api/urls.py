"""Main API URL router for /api/v1/."""
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from api.v1 import views as v1_views
from api.auth_views import (
    LoginTokenObtainPairView,
    LoginTokenRefreshView,
    MeView,
)

router = DefaultRouter()
router.register(r'districts', v1_views.DistrictViewSet)
router.register(r'branches', v1_views.BranchViewSet)
router.register(r'officers', v1_views.OfficerViewSet)
router.register(r'leads', v1_views.SalesLeadViewSet)
router.register(r'plans', v1_views.BranchPlanViewSet)
router.register(r'plan-entries', v1_views.PlanEntryViewSet)
router.register(r'audit-logs', v1_views.AuditLogViewSet)


app_name = 'api'
urlpatterns = [
    path('', include(router.urls)),

    # Auth endpoints
    path('auth/token/', LoginTokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/token/refresh/', LoginTokenRefreshView.as_view(), name='token_refresh'),
    path('auth/me/', MeView.as_view(), name='auth-me'),

    # Reports
    path('reports/dashboard/', v1_views.DashboardView.as_view(), name='reports-dashboard'),
    path('reports/offsite/', v1_views.OffsiteReportView.as_view(), name='reports-offsite'),
    path('reports/settings/', v1_views.ReportingSettingsView.as_view(), name='reports-settings'),
]

"""
Core API URLs - Authentication, current account, clinics.
"""
from django.urls import path
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
    TokenVerifyView,
)

from .views import ClinicCreateView, ClinicMembershipsView, ClinicSettingsView, CurrentUserView

urlpatterns = [
    # JWT Authentication
    path('auth/token/', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('auth/token/verify/', TokenVerifyView.as_view(), name='token_verify'),
    path('auth/me/', CurrentUserView.as_view(), name='current-user'),

    # Clinic onboarding and settings
    path('v1/clinics/', ClinicCreateView.as_view(), name='clinic-create'),
    path('v1/clinics/memberships/', ClinicMembershipsView.as_view(), name='clinic-memberships'),
    path('v1/clinic/', ClinicSettingsView.as_view(), name='clinic-settings'),
]

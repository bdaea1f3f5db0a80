"""
Authz URLs - Registration and staff management
"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import RegisterView, StaffViewSet

router = DefaultRouter()
router.register(r'staff', StaffViewSet, basename='staff')

urlpatterns = [
    path('register/', RegisterView.as_view(), name='register'),
    path('', include(router.urls)),
]

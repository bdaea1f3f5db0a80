"""
Portal URLs - Patient-facing booking, prescriptions and profile.
"""
from django.urls import path

from .views import (
    PortalAppointmentsView,
    PortalClinicDoctorsView,
    PortalClinicListView,
    PortalClinicServicesView,
    PortalDoctorsView,
    PortalPrescriptionPdfView,
    PortalPrescriptionsView,
    PortalProfileView,
)

urlpatterns = [
    path('clinics/', PortalClinicListView.as_view(), name='portal-clinics'),
    path('clinics/<uuid:clinic_id>/doctors/', PortalClinicDoctorsView.as_view(), name='portal-clinic-doctors'),
    path('clinics/<uuid:clinic_id>/services/', PortalClinicServicesView.as_view(), name='portal-clinic-services'),
    path('doctors/', PortalDoctorsView.as_view(), name='portal-doctors'),
    path('appointments/', PortalAppointmentsView.as_view(), name='portal-appointments'),
    path('prescriptions/', PortalPrescriptionsView.as_view(), name='portal-prescriptions'),
    path('prescriptions/<uuid:pk>/pdf/', PortalPrescriptionPdfView.as_view(), name='portal-prescription-pdf'),
    path('profile/', PortalProfileView.as_view(), name='portal-profile'),
]

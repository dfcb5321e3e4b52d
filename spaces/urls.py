"""
Space URLs

URL routing for the spaces app.
"""

from django.urls import path
from .views import (
    SearchView, AutocompleteView, AvailabilityCheckView, BookingHoldView, HealthView,
)

urlpatterns = [
    path('search/', SearchView.as_view(), name='search'),
    path('autocomplete/', AutocompleteView.as_view(), name='autocomplete'),
    path('health/', HealthView.as_view(), name='health'),

    # Availability & booking holds
    path('spaces/<str:space_id>/availability/', AvailabilityCheckView.as_view(), name='space-availability'),
    path('bookings/hold/', BookingHoldView.as_view(), name='booking-hold'),
]

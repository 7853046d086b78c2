from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'bookings'

router = DefaultRouter()
router.register(r'', views.BookingViewSet, basename='booking')

urlpatterns = [
    # Booking ViewSet routes
    # GET    /api/bookings/                               - My bookings
    # POST   /api/bookings/                               - Create booking
    # GET    /api/bookings/{id}/                          - Booking details (owner or admin)

    # Custom actions
    # GET    /api/bookings/upcoming/                      - My upcoming bookings
    # GET    /api/bookings/calendar/{car_id}/             - Car occupancy for a month
    # POST   /api/bookings/{id}/cancel/                   - Cancel booking
    # POST   /api/bookings/{id}/review/                   - Review completed booking
    # GET    /api/bookings/{id}/invoice/                  - Invoice
    # GET    /api/bookings/{id}/extensions/               - Extension requests
    # POST   /api/bookings/{id}/extensions/               - Request extension
    # POST   /api/bookings/{id}/payments/                 - Record payment
    # GET    /api/bookings/{id}/upi-qr/                   - UPI payment QR

    # Admin actions
    # GET    /api/bookings/all/                           - All bookings with filters
    # PUT    /api/bookings/{id}/status/                   - Update status
    # POST   /api/bookings/{id}/return/                   - Process car return
    # GET    /api/bookings/extensions/pending/            - Pending extensions
    # POST   /api/bookings/extensions/{id}/review/        - Approve or reject extension

    path('', include(router.urls)),
]

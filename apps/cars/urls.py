from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'cars'

router = DefaultRouter()
router.register(r'', views.CarViewSet, basename='car')

urlpatterns = [
    # Car ViewSet routes
    # GET    /api/cars/                          - Search cars
    # POST   /api/cars/                          - Add car (admin)
    # GET    /api/cars/{id}/                     - Car details
    # PUT    /api/cars/{id}/                     - Update car (admin)
    # PATCH  /api/cars/{id}/                     - Partial update (admin)
    # DELETE /api/cars/{id}/                     - Soft delete car (admin)

    # Custom actions
    # GET    /api/cars/featured/                 - Featured cars
    # GET    /api/cars/recommended/              - Recommended cars
    # GET    /api/cars/nearby/                   - Cars near a location
    # GET    /api/cars/categories/               - Category summary
    # GET    /api/cars/stats/                    - Fleet stats (admin)
    # POST   /api/cars/{id}/check-availability/  - Availability and quote
    # POST   /api/cars/{id}/images/              - Add image (admin)
    # PUT    /api/cars/{id}/images/primary/      - Set primary image (admin)
    # DELETE /api/cars/{id}/images/{image_id}/   - Delete image (admin)
    # GET    /api/cars/{id}/maintenance/         - Service history (admin)
    # POST   /api/cars/{id}/maintenance/         - Record service (admin)
    # PUT    /api/cars/{id}/availability/        - Set availability (admin)
    # GET    /api/cars/{id}/booking-stats/       - Booking stats (admin)

    path('', include(router.urls)),
]

from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'offers'

router = DefaultRouter()
router.register(r'', views.OfferViewSet, basename='offer')

urlpatterns = [
    # Offer ViewSet routes
    # GET    /api/offers/                     - List offers
    # POST   /api/offers/                     - Create offer (admin)
    # GET    /api/offers/{id}/                - Offer details
    # PUT    /api/offers/{id}/                - Update offer (admin)
    # PATCH  /api/offers/{id}/                - Partial update (admin)
    # DELETE /api/offers/{id}/                - Delete unused offer (admin)

    # Custom actions
    # GET    /api/offers/active/              - Offers valid now
    # POST   /api/offers/validate/            - Check a promo code
    # GET    /api/offers/user/                - Offers for the caller
    # POST   /api/offers/apply/               - Apply a code to a booking
    # GET    /api/offers/generate-code/       - New unique code (admin)
    # GET    /api/offers/{id}/usage/          - Redemptions (admin)
    # GET    /api/offers/{id}/analytics/      - Performance (admin)

    path('', include(router.urls)),
]

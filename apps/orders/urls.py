from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'orders'

router = DefaultRouter()
router.register(r'', views.OrderViewSet, basename='order')

urlpatterns = [
    # GET    /api/orders/              - Kitchen queue (?store=&status=NEW,IN_PROGRESS)
    # POST   /api/orders/              - Checkout
    # POST   /api/orders/quote/        - Price a cart with live store rates
    # GET    /api/orders/{id}/         - Order details
    # PATCH  /api/orders/{id}/status/  - Status transition
    path('', include(router.urls)),
]

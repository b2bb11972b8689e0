from django.urls import path
from . import views

app_name = 'realtime'

urlpatterns = [
    # GET /api/realtime/orders/ - SSE stream of order events
    path('orders/', views.order_events, name='order-events'),
]

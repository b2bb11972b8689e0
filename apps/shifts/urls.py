from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'shifts'

router = DefaultRouter()
router.register(r'', views.ShiftViewSet, basename='shift')

urlpatterns = [
    # GET  /api/shifts/                 - Recent shifts (manager/admin)
    # POST /api/shifts/open/            - Open a shift
    # GET  /api/shifts/active/?register= - Open shift of a register
    # POST /api/shifts/close_active/    - Close your open shifts
    # POST /api/shifts/{id}/close/      - Close a shift
    # POST /api/shifts/{id}/cash/       - Cash in/out
    path('', include(router.urls)),
]

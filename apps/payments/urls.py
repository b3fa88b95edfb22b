from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'payments'

router = DefaultRouter()
router.register(r'outgoing-payments', views.OutgoingPaymentViewSet, basename='outgoing-payment')

urlpatterns = [
    # GET/POST             /api/outgoing-payments/
    # GET/PUT/PATCH/DELETE /api/outgoing-payments/{id}/
    # POST                 /api/outgoing-payments/validate/
    # GET                  /api/outgoing-payments/next-number/
    path('', include(router.urls)),
]

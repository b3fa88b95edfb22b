from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'documents'

router = DefaultRouter()
router.register(r'quotations', views.QuotationViewSet, basename='quotation')
router.register(r'invoices', views.InvoiceViewSet, basename='invoice')

urlpatterns = [
    # Quotation routes
    # GET/POST          /api/quotations/
    # GET/PUT/PATCH/DELETE /api/quotations/{id}/
    # POST              /api/quotations/{id}/transition/
    # POST              /api/quotations/{id}/convert/
    # POST              /api/quotations/preview-totals/
    # GET               /api/quotations/next-number/

    # Invoice routes
    # GET/POST          /api/invoices/
    # GET/PUT/PATCH/DELETE /api/invoices/{id}/
    # POST              /api/invoices/{id}/transition/
    # POST              /api/invoices/{id}/record-payment/
    # GET               /api/invoices/overdue/
    # GET               /api/invoices/next-number/
    path('', include(router.urls)),
]

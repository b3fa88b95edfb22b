from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

app_name = 'directory'

router = DefaultRouter()
router.register(r'clients', views.ClientViewSet, basename='client')
router.register(r'staff', views.StaffViewSet, basename='staff')
router.register(r'products', views.ProductViewSet, basename='product')
router.register(r'expense-categories', views.ExpenseCategoryViewSet, basename='expense-category')

urlpatterns = [
    # GET/POST          /api/directory/clients/
    # GET/PUT/DELETE    /api/directory/clients/{id}/
    # (same for staff/, products/, expense-categories/)
    path('', include(router.urls)),
]

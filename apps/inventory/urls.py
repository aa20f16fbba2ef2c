# apps/inventory/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r'inventory/transactions', views.InventoryTransactionViewSet, basename='inventory-transaction')
router.register(r'inventory', views.InventoryItemViewSet, basename='inventory')

urlpatterns = [
    path('', include(router.urls)),
]

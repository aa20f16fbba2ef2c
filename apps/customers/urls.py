# apps/customers/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r'customers', views.CustomerViewSet, basename='customer')
router.register(r'therapists', views.TherapistViewSet, basename='therapist')

urlpatterns = [
    path('', include(router.urls)),
]

# apps/memberships/urls.py
from django.urls import path, include
from rest_framework.routers import DefaultRouter
from . import views

router = DefaultRouter()
router.register(r'membership-types', views.MembershipTypeViewSet, basename='membership-type')
router.register(r'memberships', views.MembershipViewSet, basename='membership')

urlpatterns = [
    path('', include(router.urls)),
]

# apps/reports/urls.py

from django.urls import path
from . import views

urlpatterns = [
    path('', views.DashboardStatisticsAPIView.as_view(), name='statistics'),
    path('overview/', views.OverviewAPIView.as_view(), name='statistics-overview'),
    path('revenue-trend/', views.RevenueTrendAPIView.as_view(), name='statistics-revenue-trend'),
    path('income-composition/', views.IncomeCompositionAPIView.as_view(), name='statistics-income-composition'),
    path('card-revenue/', views.CardRevenueAPIView.as_view(), name='statistics-card-revenue'),
    path('therapist-performance/', views.TherapistPerformanceAPIView.as_view(), name='statistics-therapist-performance'),
    path('customer-activity/', views.CustomerActivityAPIView.as_view(), name='statistics-customer-activity'),
    path('customer-constitution/', views.CustomerConstitutionAPIView.as_view(), name='statistics-customer-constitution'),
    path('inactive-customers/', views.InactiveCustomersAPIView.as_view(), name='statistics-inactive-customers'),
    path('today-overview/', views.TodayOverviewAPIView.as_view(), name='statistics-today-overview'),
    path('export/', views.StatisticsExportAPIView.as_view(), name='statistics-export'),
]

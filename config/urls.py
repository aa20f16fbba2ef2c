from django.contrib import admin
from django.urls import path, include

from core.views import health_check

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/health/', health_check, name='health-check'),

    # API endpoints
    path('api/', include('apps.customers.urls')),
    path('api/', include('apps.memberships.urls')),
    path('api/', include('apps.visits.urls')),
    path('api/', include('apps.inventory.urls')),
    path('api/statistics/', include('apps.reports.urls')),
]

"""
URL configuration for the jewelbook project.

Every app mounts its routes under ``api/v1/``.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "Jewelbook Admin Panel"
admin.site.site_title = "Jewelbook Admin Portal"
admin.site.index_title = "Jewelry inventory, billing and khata"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('jewelbook.core.urls')),
    path('api/v1/', include('jewelbook.catalog.urls')),
    path('api/v1/', include('jewelbook.khata.urls')),
    path('api/v1/', include('jewelbook.sales.urls')),
]

"""Root URL configuration for pageclassifier_tool."""

from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('pageclassifier.urls')),
]

"""URL configuration for the page classifier app.

This module defines the URL patterns for the landing page and the JSON
API. It also specifies the ``app_name`` to allow namespacing from the
project URL configuration.
"""

from django.urls import path

from . import views

app_name = 'pageclassifier'

urlpatterns = [
    path('', views.home, name='home'),
    path('api/classify', views.classify_url, name='classify'),
    path('api/classify/batch', views.classify_urls_batch, name='classify_batch'),
    path('api/classify/test', views.classify_samples, name='classify_samples'),
    path('api/classify/help', views.api_help, name='help'),
    path('api/classify/history', views.classification_history, name='history'),
    path('api/health', views.health, name='health'),
]

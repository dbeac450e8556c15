# file: clubpoints_manager/urls.py
"""Project URL configuration for ``clubpoints_manager``.

Routes:
* Django admin and ``nested_admin`` helpers.

Internal documentation is English; no public pages are served.
"""

from __future__ import annotations

from django.contrib import admin
from django.urls import URLPattern, URLResolver, include, path

# --- URL patterns ----------------------------------------------------------

urlpatterns: list[URLPattern | URLResolver] = [
    path("_nested_admin/", include("nested_admin.urls")),
    path("admin/", admin.site.urls),
]

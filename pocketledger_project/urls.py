from django.contrib import admin
from django.urls import include, path


urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/tenant/<uuid:tenant_key>/", include("core.urls")),
    path("api/tenant/<uuid:tenant_key>/import/", include("imports.urls")),
]

from django.contrib import admin
from django.urls import path, include


urlpatterns = [
    # DJANGO ADMIN (STAFF ONLY)
    path("admin/", admin.site.urls),

    # SCHEDULER TRIGGER
    path("notifications/", include("notifications.urls")),
]

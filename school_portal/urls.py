from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),  # Built-in Django admin
    path("", include("core.urls")),  # core: dashboard shell, sidebar + access APIs
    path("accounts/", include("allauth.urls")),  # login/logout
]


if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)

# youthblood_site/urls.py
from django.urls import include, path

urlpatterns = [
    path("", include("youthblood.urls")),
]

# youthblood/urls.py
from django.urls import path
from . import views

urlpatterns = [
    path("", views.home, name="home"),

    # auth
    path("auth/login/", views.login, name="login"),
    path("auth/register/", views.register, name="register"),
    path("auth/logout/", views.logout, name="logout"),

    # signed-in
    path("dashboard/", views.dashboard, name="dashboard"),
    path("my-profile/", views.my_profile, name="my_profile"),
    path("blood-request/", views.blood_request, name="blood_request"),

    # requests
    path("requests/", views.request_list, name="request_list"),
    path("requests/export/", views.requests_export, name="requests_export"),
    path("requests/<str:request_id>/", views.request_detail, name="request_detail"),
    path("requests/<str:request_id>/delete/", views.request_delete, name="request_delete"),

    # admin
    path("admin/dashboard/", views.admin_dashboard, name="admin_dashboard"),
]

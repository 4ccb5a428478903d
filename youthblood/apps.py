from django.apps import AppConfig


class YouthbloodConfig(AppConfig):
    name = "youthblood"
    verbose_name = "Youth Blood"

    def ready(self):
        from . import signals  # noqa: F401  (connects receivers)

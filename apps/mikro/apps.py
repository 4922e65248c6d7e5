from django.apps import AppConfig


class MikroConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.mikro"
    verbose_name = "Mikro ERP"

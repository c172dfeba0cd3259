from django.apps import AppConfig


class BloodstockConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "bloodstock"
    verbose_name = "Blood stock"

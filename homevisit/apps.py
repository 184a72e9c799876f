from django.apps import AppConfig


class HomevisitConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'homevisit'
    verbose_name = 'Home Visit Marketplace'

from django.apps import AppConfig


class CardsConfig(AppConfig):
    name = "src.cards"
    label = "cards"
    verbose_name = "CARD registry"

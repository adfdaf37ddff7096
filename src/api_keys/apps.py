from django.apps import AppConfig


class ApiKeysConfig(AppConfig):
    name = "src.api_keys"
    label = "api_keys"

import os

SETTINGS_MODULES = {
    "production": "config.django.production",
    "test": "config.django.test",
}


def use_settings_for_env() -> str:
    """Point DJANGO_SETTINGS_MODULE at the module for DJANGO_ENV unless it is already set."""
    env = os.environ.get("DJANGO_ENV", "development")
    return os.environ.setdefault(
        "DJANGO_SETTINGS_MODULE", SETTINGS_MODULES.get(env, "config.django.base")
    )

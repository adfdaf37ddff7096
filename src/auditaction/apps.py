from django.apps import AppConfig


class AuditactionConfig(AppConfig):
    name = 'src.auditaction'
    label = 'auditaction'

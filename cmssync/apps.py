from django.apps import AppConfig


class CmsSyncConfig(AppConfig):
    name = 'cmssync'
    verbose_name = 'CMS Sync'

    def ready(self):
        from cmssync.signals import handlers  # noqa: F401

from django.apps import AppConfig


class RealtimeConfig(AppConfig):
    name = 'apps.realtime'
    label = 'realtime'
    verbose_name = 'Realtime order events'

    def ready(self):
        from .bus import EventBus, install_event_bus

        install_event_bus(EventBus())

import atexit

from django.apps import AppConfig
from django.conf import settings


class ApiConfig(AppConfig):
  default_auto_field = 'django.db.models.BigAutoField'
  name = 'api'
  verbose_name = 'streamDrop API'

  def ready(self):
    from api.utils.alert_relay import AlertRelay

    self.alert_relay = AlertRelay(queue_size=settings.ALERT_QUEUE_SIZE)
    atexit.register(self.alert_relay.close)

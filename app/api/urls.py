from django.urls import path

from api.views import alerts as alerts_views
from api.views import donations as donations_views
from api.views import fees as fees_views

app_name = 'api'

urlpatterns = [
  # Donations
  path('donations/', donations_views.donations, name='donations'),
  path('donations/refresh/', donations_views.refresh, name='donations-refresh'),
  path('donations/<uuid:donation_id>/status/', donations_views.update_status, name='donations-status'),
  path('donations/<uuid:donation_id>/watch/', donations_views.watch, name='donations-watch'),

  # Live alerts
  path('alerts/<int:streamer_id>/stream/', alerts_views.stream, name='alerts-stream'),
  path('alerts/<int:streamer_id>/latest/', alerts_views.latest, name='alerts-latest'),
  path('alerts/<int:streamer_id>/test/', alerts_views.test_alert, name='alerts-test'),

  # Bridge fees
  path('cctp/fees/', fees_views.quote, name='cctp-fees'),
]

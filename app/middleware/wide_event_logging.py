"""
Wide event logging: one structured JSON line per request.

Views enrich the event through `request._wide_event['extra']`; the
middleware fills in the request/response envelope and emits it on the
'wide_event' logger once the response is ready.
"""
import json
import logging
import time
import uuid

from django.utils.deprecation import MiddlewareMixin

logger = logging.getLogger('wide_event')


class WideEventLoggingMiddleware(MiddlewareMixin):
  """Attach a wide event dict to every request and log it on response."""

  def process_request(self, request):
    request._wide_event = {
      'request_id': uuid.uuid4().hex,
      'method': request.method,
      'path': request.path,
      'extra': {},
    }
    request._wide_event_started = time.monotonic()

  def process_exception(self, request, exception):
    event = getattr(request, '_wide_event', None)
    if event is not None:
      event['error'] = f'{type(exception).__name__}: {exception}'

  def process_response(self, request, response):
    event = getattr(request, '_wide_event', None)
    if event is None:
      return response

    started = getattr(request, '_wide_event_started', time.monotonic())
    event['status'] = response.status_code
    event['duration_ms'] = round((time.monotonic() - started) * 1000, 2)
    event['streaming'] = response.streaming

    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated:
      event['user'] = user.handle

    level = logging.ERROR if response.status_code >= 500 else logging.INFO
    logger.log(level, json.dumps(event, default=str))
    return response

"""
Server-sent events framing for the alert and donation-watch streams.
"""
import json

from django.http import StreamingHttpResponse


def sse_event(data) -> str:
  """Frame a JSON payload as an SSE `data:` event."""
  return f'data: {json.dumps(data, default=str)}\n\n'


def sse_comment(text: str) -> str:
  """Frame an SSE comment line (ignored by EventSource, keeps proxies awake)."""
  return f': {text}\n\n'


def sse_response(stream) -> StreamingHttpResponse:
  response = StreamingHttpResponse(stream, content_type='text/event-stream')
  response['Cache-Control'] = 'no-cache'
  response['X-Accel-Buffering'] = 'no'  # nginx: flush every event
  return response

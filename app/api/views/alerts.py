"""
Live alert views: the overlay event stream, the catch-up query used on
reconnect, and a streamer-triggered test alert.
"""
import asyncio
import datetime
import logging

from django.conf import settings
from django.http import JsonResponse
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from django.views.decorators.http import require_GET, require_POST

from api.models import Donation, User
from api.utils.alert_relay import get_alert_relay
from api.utils.sse import sse_comment, sse_event, sse_response

logger = logging.getLogger('wide_event')

TEST_ALERT = {
  'donorAddress': '0x1234567890abcdef1234567890abcdef12345678',
  'donorName': 'testuser.eth',
  'amount': 5,
  'message': 'This is a test donation alert!',
  'sourceChain': 'Ethereum Sepolia',
}


@require_GET
async def stream(request, streamer_id):
  """
  GET /api/alerts/<streamer_id>/stream/

  Server-sent events for the streamer's overlay: a `connected` event, then
  one event per completed donation, with heartbeat comments in between.
  The stream ends after ALERT_STREAM_TIMEOUT_SECONDS; EventSource
  reconnects and catches up through the latest endpoint.
  """
  if not await User.objects.filter(pk=streamer_id, is_active=True).aexists():
    return JsonResponse({'error': 'Streamer not found'}, status=404)

  request._wide_event['extra']['alert_stream'] = streamer_id

  return sse_response(_alert_stream(get_alert_relay(), streamer_id))


async def _alert_stream(relay, streamer_id):
  loop = asyncio.get_running_loop()
  deadline = loop.time() + settings.ALERT_STREAM_TIMEOUT_SECONDS

  async with relay.subscribe(streamer_id) as subscription:
    yield sse_event({'type': 'connected'})

    while True:
      remaining = deadline - loop.time()
      if remaining <= 0:
        break
      event = await subscription.get(timeout=min(settings.ALERT_HEARTBEAT_SECONDS, remaining))
      if event is not None:
        yield sse_event(event)
      elif subscription.closed:
        break
      else:
        yield sse_comment('heartbeat')


@require_GET
def latest(request, streamer_id):
  """
  GET /api/alerts/<streamer_id>/latest/?after=<iso8601>

  Most recently completed donation, optionally only if it completed after
  `after` (the overlay's last-seen time).
  """
  after = None
  after_raw = request.GET.get('after')
  if after_raw:
    try:
      after = parse_datetime(after_raw.replace('Z', '+00:00'))
    except ValueError:
      after = None
    if after is None:
      return JsonResponse({'error': 'Invalid after timestamp'}, status=400)
    if timezone.is_naive(after):
      after = timezone.make_aware(after, datetime.timezone.utc)

  donation = Donation.objects.latest_completed(streamer_id, after)

  return JsonResponse({'donation': donation.to_dict() if donation else None})


@require_POST
def test_alert(request, streamer_id):
  """
  POST /api/alerts/<streamer_id>/test/

  Push a sample alert to the streamer's own overlay.
  """
  if not request.user.is_authenticated or request.user.pk != streamer_id:
    return JsonResponse({'error': 'Unauthorized'}, status=401)

  alert = {'id': f'test-{int(timezone.now().timestamp() * 1000)}', **TEST_ALERT}
  delivered = get_alert_relay().publish(streamer_id, alert)

  return JsonResponse({'success': True, 'delivered': delivered})

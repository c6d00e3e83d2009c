"""
Donation views: record creation and history for the dashboard, the
driver-facing status endpoint, and the reconciliation entry points
(dashboard refresh sweep, donor watch stream).
"""
import contextlib
import json
import logging
import math

from django.conf import settings
from django.http import JsonResponse
from django.utils.crypto import constant_time_compare
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from api.forms.donations import (
  CREATE_FIELD_MAP,
  STATUS_FIELD_MAP,
  CreateDonationForm,
  StatusUpdateForm,
  from_json,
)
from api.models import Donation, DuplicateTx, User
from api.utils.alert_relay import get_alert_relay
from api.utils.reconciler import (
  commit_transition,
  follow_donation,
  poll_donation,
  poller_slot,
  sweep_streamer,
)
from api.utils.settlement_machine import Transition, can_transition
from api.utils.sse import sse_event, sse_response

logger = logging.getLogger('wide_event')

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _json_body(request):
  """Parse a JSON object body; None if it is not one."""
  try:
    data = json.loads(request.body or b'{}')
  except (json.JSONDecodeError, UnicodeDecodeError):
    return None
  return data if isinstance(data, dict) else None


def _int_param(request, name: str, default: int) -> int:
  try:
    return int(request.GET.get(name, default))
  except (ValueError, TypeError):
    return default


def _unauthorized():
  return JsonResponse({'error': 'Unauthorized'}, status=401)


@csrf_exempt
@require_http_methods(['GET', 'POST'])
def donations(request):
  """GET: caller's donation history. POST: record a donor's burn."""
  if request.method == 'POST':
    return _create(request)
  return _history(request)


def _create(request):
  """
  Record a burn the donor just broadcast as a PENDING donation.
  Called from the public donation page, so no session is required.
  """
  data = _json_body(request)
  if data is None:
    return JsonResponse({'error': 'Invalid JSON body'}, status=400)

  fields = from_json(data, CREATE_FIELD_MAP)
  missing = [key for key, field in CREATE_FIELD_MAP.items()
             if field != 'message' and field not in fields]
  if missing:
    return JsonResponse({'error': 'Missing required fields', 'fields': missing}, status=400)

  form = CreateDonationForm(fields)
  if not form.is_valid():
    return JsonResponse({'error': 'Invalid fields', 'fields': form.errors}, status=400)

  cleaned = form.cleaned_data
  streamer = User.objects.filter(pk=cleaned['streamer_id'], is_active=True).first()
  if not streamer:
    return JsonResponse({'error': 'Streamer not found'}, status=404)

  if cleaned['amount'] < streamer.min_donation:
    return JsonResponse(
      {'error': f'Minimum donation is {streamer.min_donation.normalize()} USDC'},
      status=400,
    )

  try:
    donation = Donation.objects.create_pending(
      streamer=streamer,
      donor_address=cleaned['donor_address'],
      amount=cleaned['amount'],
      message=cleaned['message'],
      source_chain=cleaned['source_chain'],
      source_tx_hash=cleaned['source_tx_hash'],
    )
  except DuplicateTx as e:
    return JsonResponse(
      {'error': str(e), 'donation': e.existing.to_dict()},
      status=409,
    )

  request._wide_event['extra']['donation_created'] = str(donation.id)
  request._wide_event['extra']['source_tx_hash'] = donation.source_tx_hash

  return JsonResponse(donation.to_dict(), status=201)


def _history(request):
  """Paginated, newest-first donation history for the signed-in streamer."""
  if not request.user.is_authenticated:
    return _unauthorized()

  page = max(_int_param(request, 'page', 1), 1)
  limit = min(max(_int_param(request, 'limit', DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)

  donation_list, total = Donation.objects.page_for_streamer(request.user.pk, page, limit)

  request._wide_event['extra']['donations_page'] = page

  return JsonResponse({
    'donations': [d.to_dict() for d in donation_list],
    'total': total,
    'page': page,
    'totalPages': math.ceil(total / limit),
  })


@csrf_exempt
@require_http_methods(['PUT'])
def update_status(request, donation_id):
  """
  PUT /api/donations/<id>/status/

  Transition entry point for external reconciliation drivers. Goes through
  the same guarded write as the in-process drivers, so terminal donations
  are never rewritten and the completion alert fires once.
  """
  token = settings.RECONCILER_API_TOKEN
  if token and not constant_time_compare(request.headers.get('X-Reconciler-Token', ''), token):
    return JsonResponse({'error': 'Forbidden'}, status=403)

  data = _json_body(request)
  if data is None:
    return JsonResponse({'error': 'Invalid JSON body'}, status=400)
  if not data.get('status'):
    return JsonResponse({'error': 'Missing status'}, status=400)

  form = StatusUpdateForm(from_json(data, STATUS_FIELD_MAP))
  if not form.is_valid():
    return JsonResponse({'error': 'Invalid fields', 'fields': form.errors}, status=400)

  donation = Donation.objects.filter(pk=donation_id).first()
  if not donation:
    return JsonResponse({'error': 'Donation not found'}, status=404)

  status = form.cleaned_data['status']
  if donation.status == status:
    return JsonResponse(donation.to_dict())

  if not can_transition(donation.status, status):
    return JsonResponse(
      {'error': f'Cannot move {donation.status} donation to {status}', 'donation': donation.to_dict()},
      status=409,
    )

  fields = {}
  if status == Donation.Status.COMPLETED:
    fields['forward_tx_hash'] = form.cleaned_data['forward_tx_hash']

  transition = Transition(status, fields, notify=status == Donation.Status.COMPLETED)
  if not commit_transition(donation, transition, get_alert_relay()):
    donation.refresh_from_db()
    return JsonResponse(
      {'error': f'Donation is already {donation.status}', 'donation': donation.to_dict()},
      status=409,
    )

  request._wide_event['extra']['donation_status'] = f'{donation.pk}:{status}'

  return JsonResponse(donation.to_dict())


@require_POST
def refresh(request):
  """
  POST /api/donations/refresh/

  Batch-reconcile the signed-in streamer's open donations (dashboard load).
  """
  if not request.user.is_authenticated:
    return _unauthorized()

  updated = sweep_streamer(request.user.pk, get_alert_relay())

  request._wide_event['extra']['donations_refreshed'] = updated

  return JsonResponse({'updated': updated})


@require_GET
async def watch(request, donation_id):
  """
  GET /api/donations/<id>/watch/

  Event stream for the donor's session: polls Iris until the donation
  settles, or hands it off to the sweeper once the attempt budget is spent.
  Disconnecting stops the poller; the donation keeps its last status.
  A second watcher of the same donation follows the stored status instead
  of starting another Iris poller.
  """
  donation = await Donation.objects.filter(pk=donation_id).afirst()
  if donation is None:
    return JsonResponse({'error': 'Donation not found'}, status=404)

  request._wide_event['extra']['donation_watch'] = str(donation.pk)

  return sse_response(_watch_stream(donation, get_alert_relay()))


async def _watch_stream(donation, relay):
  done = donation.is_terminal
  initial = {'status': donation.status, 'attempt': 0}
  if done:
    initial['done'] = True
  yield sse_event(initial)
  if done:
    return

  try:
    with poller_slot(donation.pk) as leader:
      if leader:
        updates = poll_donation(donation.pk, relay)
      else:
        updates = follow_donation(donation.pk)
      async with contextlib.aclosing(updates):
        async for update in updates:
          yield sse_event(update.to_dict())
  except Donation.DoesNotExist:
    yield sse_event({'error': 'Donation not found', 'done': True})

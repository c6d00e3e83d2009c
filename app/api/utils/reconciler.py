"""
Donation reconciliation drivers.

Two redundant paths push donations through the settlement state machine:

- poll_donation: per-transaction poller bound to a donor's session. Asks
  Iris on a fixed interval until the donation is terminal or the attempt
  budget runs out, then hands the donation off to the sweeper as
  FORWARDING. Closing the generator (donor disconnects) stops polling and
  leaves the donation as last observed. Only one watcher per donation
  drives Iris (poller_slot); others follow the stored status.
- sweep_streamer: batch pass over a streamer's open donations, run from
  the dashboard refresh endpoint and the reconcile_donations command.
  Checks the source-chain receipt first for PENDING donations so reverted
  burns fail fast without waiting on Iris.

Both funnel writes through commit_transition, whose conditional update is
the only thing standing between concurrent drivers: whichever call lands
the write into COMPLETED is the one that schedules the alert.
"""
import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass

from asgiref.sync import sync_to_async
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from api.models import Donation
from api.utils import iris_client
from api.utils.settlement_machine import Transition, allowed_predecessors, step
from api.utils.web3_utils import (
  RECEIPT_SUCCESS,
  check_receipt,
  get_chain_by_name,
  resolve_ens_name,
)

logger = logging.getLogger('wide_event')

Status = Donation.Status


@dataclass(frozen=True)
class PollUpdate:
  status: str
  attempt: int
  done: bool = False
  handoff: bool = False

  def to_dict(self) -> dict:
    data = {'status': self.status, 'attempt': self.attempt}
    if self.done:
      data['done'] = True
    if self.handoff:
      data['handoff'] = True
    return data


# ─────────────────────────────────────────────────────────────────────────────
# Committing transitions
# ─────────────────────────────────────────────────────────────────────────────

def commit_transition(donation: Donation, transition: Transition, relay) -> bool:
  """
  Persist a state-machine decision and schedule its alert.

  The update only lands if the stored status is still a legal predecessor
  of the target, so a stale pass cannot clobber a terminal donation. The
  alert is published from transaction.on_commit, i.e. strictly after the
  COMPLETED write is durable and only by the caller that won it.

  Returns:
    True if the donation's status changed.
  """
  if not transition.changes(donation.status):
    return False

  fields = dict(transition.fields)
  if transition.status == Status.COMPLETED:
    if not donation.donor_name and settings.RESOLVE_DONOR_ENS:
      donor_name = resolve_ens_name(donation.donor_address)
      if donor_name:
        fields['donor_name'] = donor_name
    # catch-up reads key on this, not created_at
    fields['completed_at'] = timezone.now()

  with transaction.atomic():
    written = Donation.objects.transition(
      donation.pk,
      allowed_predecessors(transition.status),
      transition.status,
      **fields,
    )
    if not written:
      logger.info(
        f'Donation {donation.pk}: {donation.status}->{transition.status} '
        f'skipped, stored status moved on'
      )
      return False

    previous = donation.status
    donation.status = transition.status
    for name, value in fields.items():
      setattr(donation, name, value)

    if transition.notify:
      streamer_id = donation.streamer_id
      alert = donation.to_alert()
      transaction.on_commit(lambda: relay.publish(streamer_id, alert))

  logger.info(f'Donation {donation.pk}: {previous} -> {donation.status}')
  return True


# ─────────────────────────────────────────────────────────────────────────────
# Single-donation reconciliation
# ─────────────────────────────────────────────────────────────────────────────

def reconcile_donation(donation: Donation, relay, check_source_receipt: bool = True) -> bool:
  """
  Observe a donation's external state once and apply the state machine.

  Args:
    donation: Donation to reconcile (terminal donations are a no-op)
    relay: AlertRelay to notify on completion
    check_source_receipt: Check the burn receipt before asking Iris when
                          the donation is still PENDING

  Returns:
    True if the donation's status changed.
  """
  if donation.is_terminal:
    return False

  chain = get_chain_by_name(donation.source_chain)
  if chain is None:
    logger.warning(f'Donation {donation.pk}: unknown source chain {donation.source_chain!r}')
    return False

  receipt = None
  message = None
  if donation.status == Status.PENDING and check_source_receipt:
    receipt = check_receipt(chain.rpc_url, donation.source_tx_hash)
    if receipt == RECEIPT_SUCCESS:
      message = iris_client.get_message_status(chain.domain, donation.source_tx_hash)
  else:
    message = iris_client.get_message_status(chain.domain, donation.source_tx_hash)

  return commit_transition(donation, step(donation.status, receipt, message), relay)


# ─────────────────────────────────────────────────────────────────────────────
# Batch sweeper
# ─────────────────────────────────────────────────────────────────────────────

def sweep_streamer(streamer_id, relay, limit: int | None = None) -> int:
  """
  Reconcile a streamer's most recent open donations, one at a time.

  A failing lookup only costs that donation this pass; it is retried on
  the next sweep.

  Returns:
    Number of donations whose status changed.
  """
  if limit is None:
    limit = settings.DONATION_SWEEP_LIMIT

  updated = 0
  for donation in Donation.objects.non_terminal(streamer_id, limit):
    try:
      if reconcile_donation(donation, relay):
        updated += 1
    except Exception:
      logger.exception(f'Donation {donation.pk}: reconciliation failed, skipping')
  return updated


def sweep_all(relay, limit: int | None = None) -> dict:
  """
  Sweep every streamer with open donations.

  Returns:
    {streamer_id: updated_count} for each streamer swept.
  """
  streamer_ids = (
    Donation.objects.filter(status__in=Donation.NON_TERMINAL)
    .order_by()
    .values_list('streamer_id', flat=True)
    .distinct()
  )
  return {
    streamer_id: sweep_streamer(streamer_id, relay, limit)
    for streamer_id in list(streamer_ids)
  }


# ─────────────────────────────────────────────────────────────────────────────
# Per-transaction poller
# ─────────────────────────────────────────────────────────────────────────────

def poll_once(donation_id, relay) -> str:
  """
  One poller tick: ask Iris about the burn and apply the state machine.
  The donor's wallet already saw the burn broadcast, so no receipt check.

  Raises:
    Donation.DoesNotExist: If the donation is unknown
  """
  donation = Donation.objects.get(pk=donation_id)
  if not donation.is_terminal:
    reconcile_donation(donation, relay, check_source_receipt=False)
  return donation.status


def stored_status(donation_id) -> str:
  return Donation.objects.values_list('status', flat=True).get(pk=donation_id)


def hand_off(donation_id) -> str:
  """Mark an unfinished PENDING donation FORWARDING for the sweeper."""
  Donation.objects.transition(
    donation_id,
    allowed_predecessors(Status.FORWARDING),
    Status.FORWARDING,
  )
  return stored_status(donation_id)


# Donation ids with an Iris poller running in this process
_active_pollers = set()
_pollers_lock = threading.Lock()


@contextlib.contextmanager
def poller_slot(donation_id):
  """
  Claim the Iris poller for a donation in this process.

  Yields True to the first claimant. Later watchers of the same donation
  get False and should follow the stored status instead of polling Iris.
  """
  key = str(donation_id)
  with _pollers_lock:
    claimed = key not in _active_pollers
    if claimed:
      _active_pollers.add(key)
  try:
    yield claimed
  finally:
    if claimed:
      with _pollers_lock:
        _active_pollers.discard(key)


async def poll_donation(donation_id, relay, interval: float | None = None, max_attempts: int | None = None):
  """
  Poll a donation until it is terminal or the attempt budget is spent.

  Yields a PollUpdate after every tick. The last update has done=True;
  handoff=True means the budget ran out and the sweeper now owns it.
  """
  if interval is None:
    interval = settings.DONATION_POLL_INTERVAL_SECONDS
  if max_attempts is None:
    max_attempts = settings.DONATION_POLL_MAX_ATTEMPTS

  donation = await Donation.objects.aget(pk=donation_id)
  if not donation.is_terminal and get_chain_by_name(donation.source_chain) is None:
    logger.warning(
      f'Donation {donation_id}: unknown source chain {donation.source_chain!r}, not polling'
    )
    yield PollUpdate(donation.status, 0, done=True)
    return

  tick = sync_to_async(poll_once)

  for attempt in range(1, max_attempts + 1):
    await asyncio.sleep(interval)
    try:
      status = await tick(donation_id, relay)
    except Donation.DoesNotExist:
      raise
    except Exception:
      logger.exception(f'Donation {donation_id}: poll attempt {attempt} failed')
      continue

    if status in Donation.TERMINAL:
      yield PollUpdate(status, attempt, done=True)
      return
    yield PollUpdate(status, attempt)

  status = await sync_to_async(hand_off)(donation_id)
  logger.info(f'Donation {donation_id}: poll budget spent, handed off as {status}')
  yield PollUpdate(status, max_attempts, done=True, handoff=status not in Donation.TERMINAL)


async def follow_donation(donation_id, interval: float | None = None, max_attempts: int | None = None):
  """
  Watch a donation whose Iris poller is owned by another watcher.

  Re-reads the stored status on the poller's schedule without calling
  Iris. Yields when the status changes and once more, with done=True,
  when it is terminal or the budget is spent.
  """
  if interval is None:
    interval = settings.DONATION_POLL_INTERVAL_SECONDS
  if max_attempts is None:
    max_attempts = settings.DONATION_POLL_MAX_ATTEMPTS

  read = sync_to_async(stored_status)
  last = None

  for attempt in range(1, max_attempts + 1):
    await asyncio.sleep(interval)
    status = await read(donation_id)
    if status in Donation.TERMINAL:
      yield PollUpdate(status, attempt, done=True)
      return
    if status != last:
      last = status
      yield PollUpdate(status, attempt)

  yield PollUpdate(await read(donation_id), max_attempts, done=True)

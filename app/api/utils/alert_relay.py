"""
In-process pub/sub for live donation alerts.

Overlays subscribe per streamer through an async context manager; the
subscription is removed on every exit path (client disconnect, stream
timeout, relay shutdown). Publishing is fire-and-forget: whoever is
connected right now gets the event, nobody else. Overlays that reconnect
catch up through the latest-completed query instead.

Publishers may run on any thread (sync views run in a worker thread under
ASGI), so events are handed to each subscriber's own event loop with
call_soon_threadsafe.
"""
import asyncio
import contextlib
import logging
import threading
from collections import defaultdict

logger = logging.getLogger('wide_event')

_CLOSED = object()


class Subscription:
  """One overlay connection's view of a streamer's alert feed."""

  def __init__(self, streamer_id, loop: asyncio.AbstractEventLoop, maxsize: int):
    self.streamer_id = streamer_id
    self.closed = False
    self._loop = loop
    self._queue = asyncio.Queue(maxsize=maxsize)

  def _offer(self, event):
    try:
      self._queue.put_nowait(event)
    except asyncio.QueueFull:
      logger.warning(f'Alert queue full for streamer {self.streamer_id}, dropping event')

  def deliver(self, event) -> bool:
    """Hand an event to this subscription's loop. Safe from any thread."""
    if self.closed:
      return False
    try:
      self._loop.call_soon_threadsafe(self._offer, event)
    except RuntimeError:
      # loop already closed; the subscriber is gone
      self.closed = True
      return False
    return True

  async def get(self, timeout: float | None = None):
    """Next event, or None on timeout or once the relay has shut down."""
    if self.closed and self._queue.empty():
      return None
    try:
      event = await asyncio.wait_for(self._queue.get(), timeout=timeout)
    except asyncio.TimeoutError:
      return None
    if event is _CLOSED:
      self.closed = True
      return None
    return event


class AlertRelay:
  """Broadcast channel keyed by streamer id."""

  def __init__(self, queue_size: int = 100):
    self.queue_size = queue_size
    self._subscribers = defaultdict(set)
    self._lock = threading.Lock()

  def subscriber_count(self, streamer_id) -> int:
    with self._lock:
      return len(self._subscribers.get(self._key(streamer_id), ()))

  @staticmethod
  def _key(streamer_id) -> str:
    return str(streamer_id)

  def publish(self, streamer_id, event: dict) -> int:
    """
    Deliver `event` to everyone currently subscribed to `streamer_id`.

    Returns:
      Number of subscriptions the event was handed to.
    """
    with self._lock:
      subscribers = list(self._subscribers.get(self._key(streamer_id), ()))

    delivered = sum(1 for sub in subscribers if sub.deliver(event))
    logger.info(f'Alert for streamer {streamer_id} delivered to {delivered} subscriber(s)')
    return delivered

  @contextlib.asynccontextmanager
  async def subscribe(self, streamer_id):
    """Scoped subscription; always unregistered when the block exits."""
    key = self._key(streamer_id)
    sub = Subscription(key, asyncio.get_running_loop(), self.queue_size)
    with self._lock:
      self._subscribers[key].add(sub)
    try:
      yield sub
    finally:
      sub.closed = True
      with self._lock:
        subs = self._subscribers.get(key)
        if subs is not None:
          subs.discard(sub)
          if not subs:
            del self._subscribers[key]

  def close(self):
    """Wake and detach every subscriber. Called at process shutdown."""
    with self._lock:
      subscribers = [sub for subs in self._subscribers.values() for sub in subs]
      self._subscribers.clear()
    for sub in subscribers:
      sub.deliver(_CLOSED)
      sub.closed = True


def get_alert_relay() -> AlertRelay:
  """The process-wide relay built in ApiConfig.ready()."""
  from django.apps import apps
  return apps.get_app_config('api').alert_relay

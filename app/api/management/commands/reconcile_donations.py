"""
Batch-reconcile open donations for every streamer (or one).

Meant for cron, covering streamers who have not opened their dashboard:

  */5 * * * * python manage.py reconcile_donations
"""
import logging

from django.conf import settings
from django.core.management.base import BaseCommand

from api.utils.alert_relay import get_alert_relay
from api.utils.reconciler import sweep_all, sweep_streamer

logger = logging.getLogger('wide_event')


class Command(BaseCommand):
  help = 'Reconcile PENDING/FORWARDING donations against chain receipts and Iris'

  def add_arguments(self, parser):
    parser.add_argument('--streamer', type=int, help='Only sweep this streamer id')
    parser.add_argument(
      '--limit',
      type=int,
      default=settings.DONATION_SWEEP_LIMIT,
      help='Max open donations per streamer per run',
    )

  def handle(self, *args, **options):
    relay = get_alert_relay()
    limit = options['limit']

    if options['streamer']:
      results = {options['streamer']: sweep_streamer(options['streamer'], relay, limit)}
    else:
      results = sweep_all(relay, limit)

    for streamer_id, updated in results.items():
      self.stdout.write(f'  streamer {streamer_id}: {updated} updated')

    total = sum(results.values())
    self.stdout.write(self.style.SUCCESS(
      f'Reconciled {len(results)} streamer(s), {total} donation(s) updated.'
    ))

from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.test import TestCase


class ReconcileDonationsCommandTest(TestCase):

  @mock.patch('api.management.commands.reconcile_donations.sweep_all')
  def test_sweeps_all_streamers(self, mock_sweep_all):
    mock_sweep_all.return_value = {1: 2, 3: 0}
    out = StringIO()

    call_command('reconcile_donations', stdout=out)

    _, limit = mock_sweep_all.call_args.args
    self.assertEqual(limit, 20)
    output = out.getvalue()
    self.assertIn('streamer 1: 2 updated', output)
    self.assertIn('streamer 3: 0 updated', output)
    self.assertIn('Reconciled 2 streamer(s), 2 donation(s) updated.', output)

  @mock.patch('api.management.commands.reconcile_donations.sweep_all')
  @mock.patch('api.management.commands.reconcile_donations.sweep_streamer')
  def test_single_streamer(self, mock_sweep_streamer, mock_sweep_all):
    mock_sweep_streamer.return_value = 1
    out = StringIO()

    call_command('reconcile_donations', '--streamer', '5', '--limit', '3', stdout=out)

    mock_sweep_all.assert_not_called()
    streamer_id, _, limit = mock_sweep_streamer.call_args.args
    self.assertEqual((streamer_id, limit), (5, 3))
    self.assertIn('Reconciled 1 streamer(s), 1 donation(s) updated.', out.getvalue())

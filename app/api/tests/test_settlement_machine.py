from django.test import SimpleTestCase

from api.models import Donation
from api.utils.settlement_machine import Transition, can_transition, step
from api.utils.web3_utils import RECEIPT_PENDING, RECEIPT_REVERTED, RECEIPT_SUCCESS

Status = Donation.Status

COMPLETE = {'status': 'complete', 'forward_tx_hash': '0xf1'}
IN_FLIGHT = {'status': 'pending_confirmations', 'forward_tx_hash': None}


class PendingStepTest(SimpleTestCase):

  def test_reverted_receipt_fails_without_alert(self):
    transition = step(Status.PENDING, RECEIPT_REVERTED, None)
    self.assertEqual(transition.status, Status.FAILED)
    self.assertFalse(transition.notify)
    self.assertEqual(transition.fields, {})

  def test_unmined_receipt_stays_pending(self):
    transition = step(Status.PENDING, RECEIPT_PENDING, None)
    self.assertEqual(transition.status, Status.PENDING)
    self.assertFalse(transition.changes(Status.PENDING))

  def test_mined_but_unknown_to_iris_stays_pending(self):
    self.assertEqual(step(Status.PENDING, RECEIPT_SUCCESS, None).status, Status.PENDING)

  def test_skipped_receipt_and_no_message_stays_pending(self):
    self.assertEqual(step(Status.PENDING).status, Status.PENDING)

  def test_message_in_flight_moves_to_forwarding(self):
    transition = step(Status.PENDING, RECEIPT_SUCCESS, IN_FLIGHT)
    self.assertEqual(transition.status, Status.FORWARDING)
    self.assertFalse(transition.notify)

  def test_complete_message_completes_with_forward_hash(self):
    transition = step(Status.PENDING, None, COMPLETE)
    self.assertEqual(transition.status, Status.COMPLETED)
    self.assertEqual(transition.fields, {'forward_tx_hash': '0xf1'})
    self.assertTrue(transition.notify)

  def test_complete_without_forward_hash_is_only_forwarding(self):
    transition = step(Status.PENDING, None, {'status': 'complete', 'forward_tx_hash': None})
    self.assertEqual(transition.status, Status.FORWARDING)

  def test_iris_message_outranks_reverted_receipt(self):
    self.assertEqual(step(Status.PENDING, RECEIPT_REVERTED, IN_FLIGHT).status, Status.FORWARDING)


class ForwardingStepTest(SimpleTestCase):

  def test_complete_message_completes(self):
    transition = step(Status.FORWARDING, None, COMPLETE)
    self.assertEqual(transition.status, Status.COMPLETED)
    self.assertTrue(transition.notify)

  def test_no_news_stays_forwarding(self):
    self.assertEqual(step(Status.FORWARDING, None, None).status, Status.FORWARDING)
    self.assertEqual(step(Status.FORWARDING, None, IN_FLIGHT).status, Status.FORWARDING)

  def test_never_reverts_to_pending_or_fails(self):
    self.assertEqual(step(Status.FORWARDING, RECEIPT_REVERTED, None).status, Status.FORWARDING)


class TerminalStepTest(SimpleTestCase):

  def test_terminal_statuses_are_noops(self):
    for status in (Status.COMPLETED, Status.FAILED):
      transition = step(status, RECEIPT_REVERTED, COMPLETE)
      self.assertEqual(transition, Transition(status))
      self.assertFalse(transition.notify)


class PredecessorTest(SimpleTestCase):

  def test_allowed_moves(self):
    self.assertTrue(can_transition(Status.PENDING, Status.FORWARDING))
    self.assertTrue(can_transition(Status.PENDING, Status.COMPLETED))
    self.assertTrue(can_transition(Status.FORWARDING, Status.COMPLETED))
    self.assertTrue(can_transition(Status.PENDING, Status.FAILED))

  def test_rejected_moves(self):
    self.assertFalse(can_transition(Status.FORWARDING, Status.PENDING))
    self.assertFalse(can_transition(Status.FORWARDING, Status.FAILED))
    self.assertFalse(can_transition(Status.COMPLETED, Status.FORWARDING))
    self.assertFalse(can_transition(Status.FAILED, Status.COMPLETED))
    self.assertFalse(can_transition(Status.COMPLETED, Status.PENDING))

import io
import json
import urllib.error
from unittest.mock import MagicMock, patch

from django.test import SimpleTestCase

from api.utils.iris_client import IrisError, get_fee_quote, get_message_status, select_fee


def _response(payload):
  """Mimic the context manager urlopen returns."""
  resp = MagicMock()
  resp.read.return_value = json.dumps(payload).encode('utf-8')
  cm = MagicMock()
  cm.__enter__.return_value = resp
  cm.__exit__.return_value = False
  return cm


def _http_error(code, body=b'error'):
  return urllib.error.HTTPError('https://iris.test', code, 'error', hdrs=None, fp=io.BytesIO(body))


TIERS = [
  {'finalityThreshold': 2000, 'minimumFee': 0.5, 'forwardFee': {'high': 1200}},
  {'finalityThreshold': 1000, 'minimumFee': 0.1, 'forwardFee': {'high': 300}},
]


class SelectFeeTest(SimpleTestCase):

  def test_standard_tier_minimum_fee_wins(self):
    self.assertEqual(select_fee(TIERS), 500000)

  def test_forward_fee_wins_when_larger(self):
    tiers = [{'finalityThreshold': 2000, 'minimumFee': 0.0001, 'forwardFee': {'high': 1200}}]
    self.assertEqual(select_fee(tiers), 1200)

  def test_falls_back_to_first_tier(self):
    tiers = [
      {'finalityThreshold': 1000, 'minimumFee': 0.2, 'forwardFee': {'high': 300}},
      {'finalityThreshold': 500, 'minimumFee': 0.9, 'forwardFee': {'high': 100}},
    ]
    self.assertEqual(select_fee(tiers), 200000)

  def test_med_forward_fee_used_without_high(self):
    tiers = [{'finalityThreshold': 2000, 'minimumFee': 0, 'forwardFee': {'med': 700}}]
    self.assertEqual(select_fee(tiers), 700)

  def test_minimum_fee_rounds_up(self):
    tiers = [{'finalityThreshold': 2000, 'minimumFee': 0.0000011}]
    self.assertEqual(select_fee(tiers), 2)

  def test_no_tiers(self):
    self.assertEqual(select_fee([]), 0)


@patch('api.utils.iris_client.urllib.request.urlopen')
class FeeQuoteTest(SimpleTestCase):

  def test_quote_requests_forwarding_route(self, mock_urlopen):
    mock_urlopen.return_value = _response(TIERS)

    result = get_fee_quote(6)

    self.assertEqual(result['fee'], '500000')
    self.assertEqual(result['tiers'], TIERS)
    request = mock_urlopen.call_args[0][0]
    self.assertEqual(request.full_url, 'https://iris.test/v2/burn/USDC/fees/6/26?forward=true')

  def test_http_error_propagates(self, mock_urlopen):
    mock_urlopen.side_effect = _http_error(503, b'unavailable')
    with self.assertRaises(IrisError) as ctx:
      get_fee_quote(6)
    self.assertIn('503', str(ctx.exception))

  def test_network_error_propagates(self, mock_urlopen):
    mock_urlopen.side_effect = urllib.error.URLError('connection refused')
    with self.assertRaises(IrisError):
      get_fee_quote(6)

  def test_unexpected_shape_propagates(self, mock_urlopen):
    mock_urlopen.return_value = _response({'error': 'nope'})
    with self.assertRaises(IrisError):
      get_fee_quote(6)

  def test_unreadable_fee_values_propagate(self, mock_urlopen):
    cases = [
      [{'finalityThreshold': 2000, 'minimumFee': 'n/a'}],
      [{'finalityThreshold': 2000, 'minimumFee': 0, 'forwardFee': {'high': '12.5'}}],
      ['not-a-tier'],
    ]
    for tiers in cases:
      with self.subTest(tiers=tiers):
        mock_urlopen.return_value = _response(tiers)
        with self.assertRaises(IrisError):
          get_fee_quote(6)


@patch('api.utils.iris_client.urllib.request.urlopen')
class MessageStatusTest(SimpleTestCase):

  def test_first_message_is_returned(self, mock_urlopen):
    mock_urlopen.return_value = _response({'messages': [
      {'status': 'complete', 'forwardTxHash': '0xf1'},
      {'status': 'pending_confirmations'},
    ]})

    message = get_message_status(6, '0xabc')

    self.assertEqual(message, {'status': 'complete', 'forward_tx_hash': '0xf1'})
    request = mock_urlopen.call_args[0][0]
    self.assertEqual(request.full_url, 'https://iris.test/v2/messages/6?transactionHash=0xabc')

  def test_no_messages_yet(self, mock_urlopen):
    mock_urlopen.return_value = _response({'messages': []})
    self.assertIsNone(get_message_status(6, '0xabc'))

  def test_not_found_is_swallowed(self, mock_urlopen):
    mock_urlopen.side_effect = _http_error(404, b'{"error":"Message not found"}')
    self.assertIsNone(get_message_status(6, '0xabc'))

  def test_network_error_is_swallowed(self, mock_urlopen):
    mock_urlopen.side_effect = urllib.error.URLError('timed out')
    self.assertIsNone(get_message_status(6, '0xabc'))

  def test_bad_json_is_swallowed(self, mock_urlopen):
    resp = MagicMock()
    resp.read.return_value = b'<html>'
    mock_urlopen.return_value.__enter__.return_value = resp
    mock_urlopen.return_value.__exit__.return_value = False
    self.assertIsNone(get_message_status(6, '0xabc'))

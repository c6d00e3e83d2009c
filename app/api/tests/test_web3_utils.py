from unittest.mock import patch

from django.test import SimpleTestCase
from web3.exceptions import TransactionNotFound

from api.utils.web3_utils import (
  RECEIPT_PENDING,
  RECEIPT_REVERTED,
  RECEIPT_SUCCESS,
  check_receipt,
  get_chain,
  get_chain_by_domain,
  get_chain_by_name,
  pad_address_to_32_bytes,
  resolve_ens_name,
)

RPC = 'https://rpc.test'
TX = '0x' + '11' * 32


@patch('api.utils.web3_utils.get_w3')
class CheckReceiptTest(SimpleTestCase):

  def test_successful_receipt(self, mock_get_w3):
    mock_get_w3.return_value.eth.get_transaction_receipt.return_value = {'status': 1}
    self.assertEqual(check_receipt(RPC, TX), RECEIPT_SUCCESS)
    mock_get_w3.assert_called_once_with(RPC)
    mock_get_w3.return_value.eth.get_transaction_receipt.assert_called_once_with(TX)

  def test_failed_receipt_is_reverted(self, mock_get_w3):
    mock_get_w3.return_value.eth.get_transaction_receipt.return_value = {'status': 0}
    self.assertEqual(check_receipt(RPC, TX), RECEIPT_REVERTED)

  def test_missing_receipt_is_pending(self, mock_get_w3):
    mock_get_w3.return_value.eth.get_transaction_receipt.side_effect = TransactionNotFound('not mined')
    self.assertEqual(check_receipt(RPC, TX), RECEIPT_PENDING)

  def test_network_failure_is_pending_not_reverted(self, mock_get_w3):
    mock_get_w3.return_value.eth.get_transaction_receipt.side_effect = ConnectionError('boom')
    self.assertEqual(check_receipt(RPC, TX), RECEIPT_PENDING)

  def test_mined_receipt_without_status_counts_as_success(self, mock_get_w3):
    mock_get_w3.return_value.eth.get_transaction_receipt.return_value = {'blockNumber': 1}
    self.assertEqual(check_receipt(RPC, TX), RECEIPT_SUCCESS)


class ChainRegistryTest(SimpleTestCase):

  def test_lookup_by_name_and_domain(self):
    base = get_chain_by_name('Base Sepolia')
    self.assertEqual(base.chain_id, 84532)
    self.assertEqual(base.domain, 6)
    self.assertIs(get_chain_by_domain(6), base)
    self.assertIs(get_chain(84532), base)

  def test_unknown_chain(self):
    self.assertIsNone(get_chain_by_name('Solana Devnet'))
    self.assertIsNone(get_chain_by_domain(99))

  def test_rpc_url_prefers_settings(self):
    with self.settings(BASE_SEPOLIA_RPC_URL='https://base.example'):
      self.assertEqual(get_chain(84532).rpc_url, 'https://base.example')
    with self.settings(BASE_SEPOLIA_RPC_URL=''):
      self.assertEqual(get_chain(84532).rpc_url, 'https://sepolia.base.org')

  def test_pad_address(self):
    padded = pad_address_to_32_bytes('0xABcd' + '00' * 18)
    self.assertEqual(len(padded), 66)
    self.assertTrue(padded.endswith('abcd' + '00' * 18))
    self.assertTrue(padded.startswith('0x' + '0' * 24))


@patch('api.utils.web3_utils.get_w3')
class ResolveEnsNameTest(SimpleTestCase):

  def test_resolves_name(self, mock_get_w3):
    mock_get_w3.return_value.ens.name.return_value = 'alice.eth'
    self.assertEqual(resolve_ens_name('0x' + 'ab' * 20), 'alice.eth')

  def test_failures_yield_none(self, mock_get_w3):
    mock_get_w3.return_value.ens.name.side_effect = ValueError('no resolver')
    self.assertIsNone(resolve_ens_name('0x' + 'ab' * 20))

  def test_missing_name_is_none(self, mock_get_w3):
    mock_get_w3.return_value.ens.name.return_value = None
    self.assertIsNone(resolve_ens_name('0x' + 'ab' * 20))

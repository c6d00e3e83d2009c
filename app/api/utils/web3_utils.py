"""
Web3 utilities for streamDrop.

Server-side chain interactions:
- Chain registry (CCTP v2 domains, TokenMessengerV2 + USDC addresses, RPCs)
- Source-chain receipt checks for donor burn transactions
- Best-effort reverse ENS lookup for donor display names

The backend never signs or sends transactions; donors burn from their own
wallets and the streamer's wallet is custodied by the wallet provider.
"""
import logging
from dataclasses import dataclass

from django.conf import settings
from web3 import Web3
from web3.exceptions import TransactionNotFound

logger = logging.getLogger('wide_event')


# ─────────────────────────────────────────────────────────────────────────────
# Receipt statuses
# ─────────────────────────────────────────────────────────────────────────────

RECEIPT_SUCCESS = 'success'
RECEIPT_REVERTED = 'reverted'
RECEIPT_PENDING = 'pending'


# ─────────────────────────────────────────────────────────────────────────────
# CCTP v2 destination (Arc testnet) and forwarding hook
# ─────────────────────────────────────────────────────────────────────────────

ARC_DOMAIN = 26

# bytes32("cctp-forward"): asks the relayer to mint on the destination for us
FORWARDING_HOOK_DATA = '0x636374702d666f72776172640000000000000000000000000000000000000000'

# Standard finality tier (cheaper than Fast, fine for small donations)
STANDARD_FINALITY_THRESHOLD = 2000

TOKEN_MESSENGER_V2 = '0x8FE6B999Dc680CcFDD5Bf7EB0974218be2542DAA'


# ─────────────────────────────────────────────────────────────────────────────
# Source chains (testnet only)
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ChainConfig:
  chain_id: int
  name: str
  short_name: str
  domain: int
  usdc: str
  rpc_setting: str
  default_rpc_url: str
  token_messenger_v2: str = TOKEN_MESSENGER_V2

  @property
  def rpc_url(self) -> str:
    """Configured RPC URL for the chain, falling back to its public RPC."""
    return getattr(settings, self.rpc_setting, '') or self.default_rpc_url


CHAINS = {
  11155111: ChainConfig(
    chain_id=11155111,
    name='Ethereum Sepolia',
    short_name='Ethereum',
    domain=0,
    usdc='0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238',
    rpc_setting='SEPOLIA_RPC_URL',
    default_rpc_url='https://rpc.sepolia.org',
  ),
  421614: ChainConfig(
    chain_id=421614,
    name='Arbitrum Sepolia',
    short_name='Arbitrum',
    domain=3,
    usdc='0x75faf114eafb1BDbe2F0316DF893fd58CE46AA4d',
    rpc_setting='ARBITRUM_SEPOLIA_RPC_URL',
    default_rpc_url='https://sepolia-rollup.arbitrum.io/rpc',
  ),
  43113: ChainConfig(
    chain_id=43113,
    name='Avalanche Fuji',
    short_name='Avalanche',
    domain=1,
    usdc='0x5425890298aed601595a70AB815c96711a31Bc65',
    rpc_setting='AVALANCHE_FUJI_RPC_URL',
    default_rpc_url='https://api.avax-test.network/ext/bc/C/rpc',
  ),
  84532: ChainConfig(
    chain_id=84532,
    name='Base Sepolia',
    short_name='Base',
    domain=6,
    usdc='0x036CbD53842c5426634e7929541eC2318f3dCF7e',
    rpc_setting='BASE_SEPOLIA_RPC_URL',
    default_rpc_url='https://sepolia.base.org',
  ),
  11155420: ChainConfig(
    chain_id=11155420,
    name='OP Sepolia',
    short_name='Optimism',
    domain=2,
    usdc='0x5fd84259d66Cd46123540766Be93DFE6D43130D7',
    rpc_setting='OPTIMISM_SEPOLIA_RPC_URL',
    default_rpc_url='https://sepolia.optimism.io',
  ),
  80002: ChainConfig(
    chain_id=80002,
    name='Polygon Amoy',
    short_name='Polygon',
    domain=7,
    usdc='0x41E94Eb019C0762f9Bfcf9Fb1E58725BfB0e7582',
    rpc_setting='POLYGON_AMOY_RPC_URL',
    default_rpc_url='https://rpc-amoy.polygon.technology',
  ),
}

ENS_CHAIN_ID = 11155111


def get_chain(chain_id: int) -> ChainConfig | None:
  return CHAINS.get(chain_id)


def get_chain_by_name(name: str) -> ChainConfig | None:
  """Look up a chain by the display name stored on donations."""
  for chain in CHAINS.values():
    if chain.name == name:
      return chain
  return None


def get_chain_by_domain(domain: int) -> ChainConfig | None:
  for chain in CHAINS.values():
    if chain.domain == domain:
      return chain
  return None


def pad_address_to_32_bytes(address: str) -> str:
  """Pad an address to 32 bytes (64 hex chars + 0x prefix)."""
  clean = address.lower().replace('0x', '')
  return '0x' + clean.zfill(64)


# ─────────────────────────────────────────────────────────────────────────────
# Web3 provider helpers
# ─────────────────────────────────────────────────────────────────────────────

def get_w3(rpc_url: str):
  """Get a Web3 instance for an RPC endpoint."""
  return Web3(Web3.HTTPProvider(
    rpc_url,
    request_kwargs={'timeout': settings.RPC_TIMEOUT_SECONDS},
  ))


def check_receipt(rpc_url: str, tx_hash: str) -> str:
  """
  Check a burn transaction's finalization on its source chain.

  A missing receipt means the tx is not mined yet. Network and decoding
  failures are reported as pending too: staying pending is safe, wrongly
  marking a burn as reverted is not.

  Args:
    rpc_url: Source chain JSON-RPC endpoint
    tx_hash: Burn transaction hash (0x-prefixed)

  Returns:
    RECEIPT_SUCCESS, RECEIPT_REVERTED or RECEIPT_PENDING
  """
  try:
    receipt = get_w3(rpc_url).eth.get_transaction_receipt(tx_hash)
  except TransactionNotFound:
    return RECEIPT_PENDING
  except Exception as e:
    logger.warning(f'Receipt check failed for {tx_hash}: {e}')
    return RECEIPT_PENDING

  if receipt is None:
    return RECEIPT_PENDING

  status = receipt.get('status')
  if status is not None and int(status) == 0:
    return RECEIPT_REVERTED
  return RECEIPT_SUCCESS


def resolve_ens_name(address: str) -> str | None:
  """
  Reverse-resolve an address to its primary ENS name on Sepolia.
  Best-effort: any failure yields None.
  """
  chain = get_chain(ENS_CHAIN_ID)
  try:
    name = get_w3(chain.rpc_url).ens.name(Web3.to_checksum_address(address))
  except Exception as e:
    logger.debug(f'ENS lookup failed for {address}: {e}')
    return None
  return name or None

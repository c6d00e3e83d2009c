"""
Circle Iris API client for streamDrop.

Iris is CCTP's attestation service. We use it for two things:
1. Fee quotes before the donor burns (depositForBurnWithHook needs a
   maxFee that clears the on-chain minimum, or the burn reverts).
2. Message status after the burn, to learn when the forwarding relayer
   has minted on the destination chain.

API docs: https://developers.circle.com/api-reference/cctp
Sandbox base URL: https://iris-api-sandbox.circle.com
"""
import json
import logging
import math
import urllib.error
import urllib.parse
import urllib.request

from django.conf import settings

from api.utils.web3_utils import ARC_DOMAIN, STANDARD_FINALITY_THRESHOLD

logger = logging.getLogger('wide_event')

MESSAGE_COMPLETE = 'complete'

USDC_DECIMALS = 6


class IrisError(Exception):
  """Raised when the Iris API returns an error or is unreachable."""
  pass


def _iris_url() -> str:
  """Get the configured Iris base URL."""
  return getattr(settings, 'IRIS_API_URL', '') or 'https://iris-api-sandbox.circle.com'


def _api_get(path: str, params: dict | None = None) -> dict | list:
  """
  GET a JSON document from the Iris API.

  Args:
    path: API path (e.g., '/v2/messages/0')
    params: Optional query parameters

  Returns:
    Parsed JSON response

  Raises:
    IrisError: On non-2xx responses, connection failures or bad JSON
  """
  url = f'{_iris_url()}{path}'
  if params:
    url += '?' + urllib.parse.urlencode(params)

  req = urllib.request.Request(url, headers={'Accept': 'application/json'}, method='GET')
  timeout = getattr(settings, 'IRIS_TIMEOUT_SECONDS', 15)

  try:
    with urllib.request.urlopen(req, timeout=timeout) as resp:
      return json.loads(resp.read().decode('utf-8'))
  except urllib.error.HTTPError as e:
    error_body = e.read().decode('utf-8', errors='replace')
    raise IrisError(f'Iris API returned {e.code}: {error_body}') from e
  except urllib.error.URLError as e:
    raise IrisError(f'Iris API connection failed: {e.reason}') from e
  except (TimeoutError, ValueError) as e:
    raise IrisError(f'Iris API request failed: {e}') from e


def select_fee(tiers: list[dict]) -> int:
  """
  Pick the maxFee (USDC base units) to pass to depositForBurnWithHook.

  Uses the Standard finality tier, falling back to the first tier. The fee
  is max(minimumFee in base units, forwardFee.high or .med): the burn must
  clear TokenMessengerV2's minimum fee check and also cover the relayer's
  forwarding cost.
  """
  if not tiers:
    return 0

  tier = next(
    (t for t in tiers if t.get('finalityThreshold') == STANDARD_FINALITY_THRESHOLD),
    tiers[0],
  )

  minimum_fee_raw = math.ceil(float(tier.get('minimumFee') or 0) * 10 ** USDC_DECIMALS)
  forward_fee = tier.get('forwardFee') or {}
  forward_fee_raw = forward_fee.get('high')
  if forward_fee_raw is None:
    forward_fee_raw = forward_fee.get('med')
  if forward_fee_raw is None:
    forward_fee_raw = 0

  return max(minimum_fee_raw, int(forward_fee_raw))


def get_fee_quote(source_domain: int, dest_domain: int = ARC_DOMAIN) -> dict:
  """
  Fetch burn fee tiers for a route and compute the fee to present.

  Failures propagate: a donor must never burn with a guessed fee.

  Returns:
    dict with 'fee' (base units, as a string) and the raw 'tiers'

  Raises:
    IrisError: If Iris is unreachable, errors, or returns an unexpected shape
  """
  tiers = _api_get(
    f'/v2/burn/USDC/fees/{source_domain}/{dest_domain}',
    {'forward': 'true'},
  )
  if not isinstance(tiers, list):
    raise IrisError(f'Unexpected fee response for domain {source_domain}: {tiers!r}')

  try:
    fee = select_fee(tiers)
  except (TypeError, ValueError, AttributeError) as e:
    raise IrisError(f'Unreadable fee tiers for domain {source_domain}: {e}') from e
  logger.info(f'Iris fee quote {source_domain}->{dest_domain}: {fee}')
  return {'fee': str(fee), 'tiers': tiers}


def get_message_status(source_domain: int, tx_hash: str) -> dict | None:
  """
  Look up the CCTP message emitted by a burn transaction.

  Errors are swallowed into "nothing known yet" so a transient Iris hiccup
  never stalls a reconciliation pass.

  Returns:
    {'status': str, 'forward_tx_hash': str | None} for the first message,
    or None if Iris has not observed the burn (or could not be reached).
  """
  try:
    data = _api_get(f'/v2/messages/{source_domain}', {'transactionHash': tx_hash})
  except IrisError as e:
    logger.debug(f'Iris message lookup for {tx_hash} unavailable: {e}')
    return None

  messages = data.get('messages') if isinstance(data, dict) else None
  if not messages:
    return None

  message = messages[0]
  return {
    'status': message.get('status'),
    'forward_tx_hash': message.get('forwardTxHash') or None,
  }

"""
Donor-facing error classification.

Wallet and upstream errors are turned into one of a handful of readable
messages instead of leaking raw RPC or HTTP error text to donors.
"""

USER_CANCELLED = 'user_cancelled'
INSUFFICIENT_FUNDS = 'insufficient_funds'
ALLOWANCE = 'allowance'
NETWORK = 'network'
TIMEOUT = 'timeout'
GENERIC = 'generic'

MESSAGES = {
  USER_CANCELLED: 'Transaction was cancelled.',
  INSUFFICIENT_FUNDS: 'Insufficient funds. Please check your USDC balance.',
  ALLOWANCE: 'Token allowance too low. Please try again.',
  NETWORK: 'Network error. Please check your connection and try again.',
  TIMEOUT: 'Request timed out. Please try again.',
  GENERIC: 'Something went wrong. Please try again.',
}

# First match wins
_PATTERNS = [
  (USER_CANCELLED, ('user rejected', 'user denied')),
  (INSUFFICIENT_FUNDS, ('insufficient funds', 'insufficient balance')),
  (ALLOWANCE, ('exceeds allowance',)),
  (NETWORK, ('network', 'disconnected', 'connection')),
  (TIMEOUT, ('timeout', 'timed out')),
]


def classify_error(error) -> str:
  """Map an exception or error string to a classification key."""
  lower = str(error).lower()
  for kind, needles in _PATTERNS:
    if any(needle in lower for needle in needles):
      return kind
  return GENERIC


def friendly_error(error) -> dict:
  """{'kind', 'error'} payload for donor-facing JSON responses."""
  kind = classify_error(error)
  return {'kind': kind, 'error': MESSAGES[kind]}

"""
Donation settlement state machine.

    PENDING ──> FORWARDING ──> COMPLETED
       │
       └──────> FAILED

Pure policy: given the stored status and whatever the drivers observed
(source-chain receipt, Iris message), decide the next status, the fields
to write, and whether the transition should raise a live alert. No I/O
happens here; see api.utils.reconciler for the drivers that commit it.
"""
from dataclasses import dataclass, field

from api.models import Donation
from api.utils.iris_client import MESSAGE_COMPLETE
from api.utils.web3_utils import RECEIPT_REVERTED

Status = Donation.Status

# Statuses a donation may be in for a write into the key status to land
PREDECESSORS = {
  Status.FORWARDING: (Status.PENDING,),
  Status.COMPLETED: (Status.PENDING, Status.FORWARDING),
  Status.FAILED: (Status.PENDING,),
}


@dataclass(frozen=True)
class Transition:
  status: str
  fields: dict = field(default_factory=dict)
  notify: bool = False

  def changes(self, current: str) -> bool:
    return self.status != current


def allowed_predecessors(status: str) -> tuple:
  """Stored statuses from which a move into `status` is legal."""
  return PREDECESSORS.get(status, ())


def can_transition(current: str, status: str) -> bool:
  return current in allowed_predecessors(status)


def _completed(message: dict | None) -> bool:
  return bool(
    message
    and message.get('status') == MESSAGE_COMPLETE
    and message.get('forward_tx_hash')
  )


def step(status: str, receipt: str | None = None, message: dict | None = None) -> Transition:
  """
  Decide the next state of a donation.

  Args:
    status: Current stored status
    receipt: Source-chain receipt status, or None if the check was skipped
    message: Iris message ({'status', 'forward_tx_hash'}), or None if Iris
             knows nothing about the burn yet

  Returns:
    Transition; a transition whose status equals `status` means no change.
  """
  if status in Donation.TERMINAL:
    return Transition(status)

  if _completed(message):
    return Transition(
      Status.COMPLETED,
      {'forward_tx_hash': message['forward_tx_hash']},
      notify=True,
    )

  if status == Status.FORWARDING:
    return Transition(status)

  # PENDING. An Iris message implies the burn landed, so it outranks the receipt.
  if message is not None:
    return Transition(Status.FORWARDING)
  if receipt == RECEIPT_REVERTED:
    return Transition(Status.FAILED)
  return Transition(status)

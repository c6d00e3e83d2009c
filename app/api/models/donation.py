import uuid

from django.conf import settings
from django.db import IntegrityError, models, transaction
from django.utils import timezone

MESSAGE_MAX_UNITS = 200


class DuplicateTx(Exception):
  """Raised when a donation already exists for a burn transaction hash."""

  def __init__(self, source_tx_hash: str, existing=None):
    super().__init__(f'Donation already recorded for {source_tx_hash}')
    self.source_tx_hash = source_tx_hash
    self.existing = existing


def cap_message(message: str | None) -> str | None:
  """
  Truncate a donor message to MESSAGE_MAX_UNITS UTF-16 code units.
  A surrogate pair split by the cut is dropped rather than kept half.
  """
  if not message:
    return None
  encoded = message.encode('utf-16-le')
  if len(encoded) <= MESSAGE_MAX_UNITS * 2:
    return message
  return encoded[:MESSAGE_MAX_UNITS * 2].decode('utf-16-le', errors='ignore')


class DonationQuerySet(models.QuerySet):

  def for_streamer(self, streamer_id):
    return self.filter(streamer_id=streamer_id)

  def non_terminal(self, streamer_id, limit: int):
    """Most recent PENDING/FORWARDING donations for a streamer."""
    return list(
      self.for_streamer(streamer_id)
      .filter(status__in=Donation.NON_TERMINAL)
      .order_by('-created_at')[:limit]
    )

  def page_for_streamer(self, streamer_id, page: int, limit: int):
    """
    Newest-first page of a streamer's donation history.

    Returns:
      (donations, total) tuple; pages past the end are empty.
    """
    qs = self.for_streamer(streamer_id).order_by('-created_at')
    offset = (page - 1) * limit
    return list(qs[offset:offset + limit]), qs.count()

  def latest_completed(self, streamer_id, after=None):
    """
    Most recently completed donation, optionally only one that completed
    strictly after `after`. Keyed on completion time: a burn broadcast
    before the overlay last looked may settle long after.
    """
    qs = self.for_streamer(streamer_id).filter(status=Donation.Status.COMPLETED)
    if after is not None:
      qs = qs.filter(completed_at__gt=after)
    return qs.order_by('-completed_at').first()


class DonationManager(models.Manager.from_queryset(DonationQuerySet)):

  def create_pending(self, **fields):
    """
    Record a freshly broadcast burn as a PENDING donation.

    Raises:
      DuplicateTx: If a donation already exists for the burn tx hash.
    """
    fields['message'] = cap_message(fields.get('message'))
    try:
      with transaction.atomic():
        return self.create(status=Donation.Status.PENDING, **fields)
    except IntegrityError as e:
      existing = self.filter(source_tx_hash=fields.get('source_tx_hash')).first()
      if existing is None:
        raise
      raise DuplicateTx(existing.source_tx_hash, existing) from e

  def transition(self, pk, from_statuses, status: str, **fields) -> int:
    """
    Conditionally move a donation to `status`.

    The write only lands if the stored status is still one of
    `from_statuses`, so a stale reconciliation pass can never overwrite a
    terminal record. Returns the number of rows written (0 or 1).
    """
    return self.filter(pk=pk, status__in=list(from_statuses)).update(
      status=status,
      updated_at=timezone.now(),
      **fields,
    )


class Donation(models.Model):
  """
  A donor's cross-chain USDC burn towards a streamer, tracked from
  broadcast through bridge forwarding to the final mint.
  """

  class Status(models.TextChoices):
    PENDING = 'PENDING', 'Pending'
    FORWARDING = 'FORWARDING', 'Forwarding'
    COMPLETED = 'COMPLETED', 'Completed'
    FAILED = 'FAILED', 'Failed'

  TERMINAL = (Status.COMPLETED, Status.FAILED)
  NON_TERMINAL = (Status.PENDING, Status.FORWARDING)

  id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
  streamer = models.ForeignKey(
    settings.AUTH_USER_MODEL,
    on_delete=models.PROTECT,
    related_name='donations',
  )
  donor_address = models.CharField(max_length=42)
  donor_name = models.CharField(max_length=255, blank=True, default='')
  amount = models.DecimalField(max_digits=18, decimal_places=6)
  message = models.TextField(null=True, blank=True)
  source_chain = models.CharField(max_length=50)
  source_tx_hash = models.CharField(max_length=66, unique=True)
  forward_tx_hash = models.CharField(max_length=66, null=True, blank=True)
  status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
  created_at = models.DateTimeField(auto_now_add=True, db_index=True)
  updated_at = models.DateTimeField(auto_now=True)
  completed_at = models.DateTimeField(null=True, blank=True)

  objects = DonationManager()

  class Meta:
    app_label = 'api'
    ordering = ['-created_at']
    indexes = [
      models.Index(fields=['streamer', 'status', '-created_at'], name='donation_streamer_status_idx'),
      models.Index(fields=['streamer', '-completed_at'], name='donation_streamer_done_idx'),
    ]

  def __str__(self):
    return f'{self.source_tx_hash[:10]}... ({self.amount} USDC {self.status})'

  @property
  def is_terminal(self) -> bool:
    return self.status in self.TERMINAL

  def to_dict(self) -> dict:
    return {
      'id': str(self.id),
      'streamerId': self.streamer_id,
      'donorAddress': self.donor_address,
      'donorName': self.donor_name or None,
      'amount': float(self.amount),
      'message': self.message,
      'sourceChain': self.source_chain,
      'sourceTxHash': self.source_tx_hash,
      'forwardTxHash': self.forward_tx_hash,
      'status': self.status,
      'createdAt': self.created_at.isoformat(),
      'updatedAt': self.updated_at.isoformat(),
      'completedAt': self.completed_at.isoformat() if self.completed_at else None,
    }

  def to_alert(self) -> dict:
    """Payload pushed to live overlays when the donation completes."""
    alert = {
      'id': str(self.id),
      'donorAddress': self.donor_address,
      'amount': float(self.amount),
      'message': self.message,
      'sourceChain': self.source_chain,
    }
    if self.donor_name:
      alert['donorName'] = self.donor_name
    return alert

from django import forms
from django.core.validators import RegexValidator

from api.models import Donation
from api.utils.web3_utils import CHAINS

TX_HASH_VALIDATOR = RegexValidator(r'^0x[0-9a-fA-F]{64}$', 'Invalid transaction hash')
ADDRESS_VALIDATOR = RegexValidator(r'^0x[0-9a-fA-F]{40}$', 'Invalid address')

# JSON body keys (camelCase, as sent by the donation page) → form fields
CREATE_FIELD_MAP = {
  'streamerId': 'streamer_id',
  'donorAddress': 'donor_address',
  'amount': 'amount',
  'message': 'message',
  'sourceChain': 'source_chain',
  'sourceTxHash': 'source_tx_hash',
}

STATUS_FIELD_MAP = {
  'status': 'status',
  'forwardTxHash': 'forward_tx_hash',
}


def from_json(data: dict, field_map: dict) -> dict:
  """Rename camelCase JSON keys to form field names, dropping unknown keys."""
  return {
    field: data[key]
    for key, field in field_map.items()
    if data.get(key) not in (None, '')
  }


class CreateDonationForm(forms.Form):
  """
  A donor's burn, reported right after it was broadcast. The message is
  capped (not rejected) when stored.
  """

  streamer_id = forms.IntegerField(min_value=1)
  donor_address = forms.CharField(max_length=42, validators=[ADDRESS_VALIDATOR])
  amount = forms.DecimalField(max_digits=18, decimal_places=6, min_value=0)
  message = forms.CharField(required=False, strip=False)
  source_chain = forms.ChoiceField(
    choices=[(chain.name, chain.name) for chain in CHAINS.values()],
  )
  source_tx_hash = forms.CharField(max_length=66, validators=[TX_HASH_VALIDATOR])

  def clean_amount(self):
    amount = self.cleaned_data['amount']
    if amount <= 0:
      raise forms.ValidationError('Amount must be positive')
    return amount


class StatusUpdateForm(forms.Form):
  """Transition reported by a reconciliation driver."""

  status = forms.ChoiceField(choices=Donation.Status.choices)
  forward_tx_hash = forms.CharField(
    max_length=66,
    required=False,
    validators=[TX_HASH_VALIDATOR],
  )

  def clean(self):
    cleaned = super().clean()
    if (
      cleaned.get('status') == Donation.Status.COMPLETED
      and not cleaned.get('forward_tx_hash')
    ):
      raise forms.ValidationError('forwardTxHash is required for COMPLETED')
    return cleaned

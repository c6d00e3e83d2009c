from django.contrib import admin

from api.models import Donation, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
  list_display = ['handle', 'display_name', 'wallet_address', 'min_donation', 'is_active', 'created_at']
  search_fields = ['handle', 'display_name', 'wallet_address']
  list_filter = ['is_active', 'is_staff']
  readonly_fields = ['created_at', 'updated_at']


@admin.register(Donation)
class DonationAdmin(admin.ModelAdmin):
  list_display = ['source_tx_hash', 'streamer', 'donor_address', 'amount', 'source_chain', 'status', 'created_at']
  search_fields = ['source_tx_hash', 'forward_tx_hash', 'donor_address', 'streamer__handle']
  list_filter = ['status', 'source_chain']
  # Status only moves through the reconciler's guarded transitions
  readonly_fields = [
    'id', 'streamer', 'donor_address', 'donor_name', 'amount', 'message', 'source_chain',
    'source_tx_hash', 'forward_tx_hash', 'status', 'created_at', 'updated_at', 'completed_at',
  ]

"""
Fee quote view: the maxFee a donor must attach to their burn.
"""
import logging

from django.http import JsonResponse
from django.views.decorators.http import require_GET

from api.utils.errors import friendly_error
from api.utils.iris_client import IrisError, get_fee_quote
from api.utils.web3_utils import ARC_DOMAIN, get_chain_by_domain

logger = logging.getLogger('wide_event')


@require_GET
def quote(request):
  """
  GET /api/cctp/fees/?sourceDomain=<domain>

  Returns {fee, tiers}; fee is in USDC base units. Upstream failures are
  surfaced, never papered over with a default fee.
  """
  source_domain = request.GET.get('sourceDomain', '')
  if not source_domain:
    return JsonResponse({'error': 'Missing sourceDomain'}, status=400)

  try:
    domain = int(source_domain)
  except ValueError:
    return JsonResponse({'error': 'Invalid sourceDomain'}, status=400)

  if get_chain_by_domain(domain) is None:
    return JsonResponse({'error': f'Unsupported sourceDomain: {domain}'}, status=400)

  try:
    result = get_fee_quote(domain, ARC_DOMAIN)
  except IrisError as e:
    logger.error(f'Fee quote failed for domain {domain}: {e}')
    return JsonResponse(friendly_error(e), status=502)

  request._wide_event['extra']['fee_quote'] = f'{domain}:{result["fee"]}'

  return JsonResponse(result)

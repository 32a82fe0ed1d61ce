import hmac
import logging
from dataclasses import dataclass
from typing import Any, Optional

from django.conf import settings

from .exceptions import CallbackParseError

logger = logging.getLogger(__name__)

ACCEPTED = {"ResultCode": 0, "ResultDesc": "Accepted"}


@dataclass
class StkCallbackResult:
    checkout_request_id: Optional[str]
    result_code: Any
    result_desc: Optional[str]
    receipt: Optional[str] = None
    amount: Any = None
    phone: Optional[str] = None


def parse_stk_callback(payload) -> StkCallbackResult:
    if not isinstance(payload, dict):
        raise CallbackParseError("Callback body is not a JSON object")
    body = payload.get('Body')
    stk = body.get('stkCallback') if isinstance(body, dict) else None
    if not isinstance(stk, dict):
        raise CallbackParseError("Callback body has no Body.stkCallback")

    result = StkCallbackResult(
        checkout_request_id=stk.get('CheckoutRequestID'),
        result_code=stk.get('ResultCode'),
        result_desc=stk.get('ResultDesc'),
    )

    # CallbackMetadata is only present on success
    metadata = stk.get('CallbackMetadata')
    items = metadata.get('Item') if isinstance(metadata, dict) else None
    if not isinstance(items, list):
        items = []
    for item in items:
        if not isinstance(item, dict):
            continue
        name = item.get('Name')
        value = item.get('Value')
        if name == 'MpesaReceiptNumber':
            result.receipt = value
        elif name == 'Amount':
            result.amount = value
        elif name == 'PhoneNumber':
            result.phone = str(value) if value is not None else None
    return result


def get_client_ip(request):
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def verify_callback_origin(request):
    """
    Check the optional shared token and IP allow-list configured for the
    callback URL. With neither configured every caller is trusted.
    """
    expected_token = getattr(settings, 'MPESA_CALLBACK_TOKEN', '')
    if expected_token:
        supplied = request.GET.get('token', '')
        if not hmac.compare_digest(supplied.encode('utf-8'), expected_token.encode('utf-8')):
            logger.warning("Callback token mismatch from %s", get_client_ip(request))
            return False

    allowed_ips = getattr(settings, 'MPESA_CALLBACK_ALLOWED_IPS', [])
    if allowed_ips:
        ip = get_client_ip(request)
        if ip not in allowed_ips:
            logger.warning("Callback from %s is not in the allow-list", ip)
            return False
    return True

import json
import logging
from decimal import Decimal, InvalidOperation

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST

from .callbacks import ACCEPTED, parse_stk_callback, verify_callback_origin
from .exceptions import CallbackParseError, ConfigurationError, GatewayError, ValidationError
from .ledger import TransactionRecord, get_ledger
from .services.mpesa import MpesaDarajaClient
from .utils import normalize_phone

logger = logging.getLogger(__name__)

# Daraja amounts are whole shillings well below a trillion
MAX_AMOUNT_DIGITS = 12


def _parse_amount(value):
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValidationError("amount must be a number")
    if not amount.is_finite() or amount.adjusted() > MAX_AMOUNT_DIGITS:
        raise ValidationError("amount must be a number")
    return int(amount) if amount == amount.to_integral_value() else float(amount)


def _read_stk_request(request):
    try:
        data = json.loads(request.body.decode('utf-8') or '{}')
    except ValueError:
        # covers JSONDecodeError, UnicodeDecodeError and oversized integer literals
        raise ValidationError("Invalid JSON body")
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON body")

    phone = data.get('phone')
    amount = data.get('amount') or data.get('amountKes')
    if not phone:
        raise ValidationError("phone is required")
    if not amount:
        raise ValidationError("amount is required")

    return {
        'booking_id': data.get('bookingId') or 'TEST-BOOKING',
        'phone': normalize_phone(phone),
        'amount': _parse_amount(amount),
        'account_reference': data.get('accountReference') or 'TrackWash',
        'transaction_desc': data.get('transactionDesc') or 'TrackWash Booking',
    }


@csrf_exempt
@require_POST
def mpesa_stk_push(request):
    try:
        params = _read_stk_request(request)
    except ValidationError as e:
        return JsonResponse({"error": e.message}, status=e.status_code)

    client = MpesaDarajaClient.from_settings()
    try:
        client.require_stk_config()
    except ConfigurationError as e:
        logger.error("STK push not configured: %s", e.message)
        return JsonResponse({"error": e.message}, status=e.status_code)

    try:
        data = client.initiate(
            phone=params['phone'],
            amount=params['amount'],
            account_reference=params['account_reference'],
            transaction_desc=params['transaction_desc'],
        )
    except (ConfigurationError, GatewayError) as e:
        logger.error("STK PUSH ERROR: %s %s", e.message, e.details)
        return JsonResponse({"ok": False, "error": "STK push failed", "details": e.details},
                            status=e.status_code)

    # Only an accepted push yields an id the callback can correlate on
    checkout_id = data.get('CheckoutRequestID')
    if checkout_id:
        get_ledger().insert(checkout_id, TransactionRecord(
            booking_id=params['booking_id'],
            phone=params['phone'],
            amount=params['amount'],
            raw=data,
        ))
        logger.info("STK push %s pending for booking %s", checkout_id, params['booking_id'])
    else:
        logger.warning("STK push response without CheckoutRequestID: %s", data)

    return JsonResponse({"ok": True, "bookingId": params['booking_id'], **data})


@csrf_exempt
@require_POST
def mpesa_callback(request):
    # Daraja re-delivers anything not acknowledged, so failures are logged and still accepted
    try:
        _handle_callback(request)
    except CallbackParseError as e:
        logger.warning("CALLBACK HANDLER ERROR: %s", e.message)
    except Exception:
        logger.exception("CALLBACK HANDLER ERROR")
    return JsonResponse(ACCEPTED)


def _handle_callback(request):
    try:
        payload = json.loads(request.body.decode('utf-8'))
    except ValueError as e:
        raise CallbackParseError(f"invalid JSON ({e})")

    logger.info("M-PESA CALLBACK RECEIVED: %s", json.dumps(payload))

    if not verify_callback_origin(request):
        return

    result = parse_stk_callback(payload)
    if not result.checkout_request_id:
        logger.warning("Callback without CheckoutRequestID ignored")
        return

    record = get_ledger().apply_callback_result(
        result.checkout_request_id,
        result_code=result.result_code,
        result_desc=result.result_desc,
        receipt=result.receipt,
        amount=result.amount,
        phone=result.phone,
        raw_callback=payload,
    )
    if record is None:
        logger.warning("Callback for unknown CheckoutRequestID %s dropped", result.checkout_request_id)
    else:
        logger.info("Transaction %s is %s (%s)", result.checkout_request_id,
                    record.status.value, result.result_desc)


@require_GET
def mpesa_status(request, checkout_request_id):
    record = get_ledger().get(checkout_request_id)
    if record is None:
        return JsonResponse({"ok": False, "error": "Not found"}, status=404)
    return JsonResponse({
        "ok": True,
        "requestId": checkout_request_id,
        "checkoutRequestId": checkout_request_id,
        **record.as_dict(),
    })

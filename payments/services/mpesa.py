import logging

import requests
from django.conf import settings

from ..exceptions import ConfigurationError, GatewayError
from ..utils import build_password, timestamp as make_timestamp
from .base import PaymentProvider

logger = logging.getLogger(__name__)

BASE_URLS = {
    'sandbox': 'https://sandbox.safaricom.co.ke',
    'production': 'https://api.safaricom.co.ke',
}


def _upstream_body(resp):
    try:
        return resp.json()
    except ValueError:
        return resp.text


def _as_number(value):
    s = str(value)
    return int(s) if s.isdigit() else value


class MpesaDarajaClient(PaymentProvider):
    def __init__(self, env, consumer_key, consumer_secret, shortcode, passkey, callback_url,
                 transaction_type='CustomerPayBillOnline', timeout=30):
        self.env = env
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.shortcode = shortcode
        self.passkey = passkey
        self.callback_url = callback_url
        self.transaction_type = transaction_type
        self.timeout = timeout

        self.base_url = BASE_URLS['production'] if env == 'production' else BASE_URLS['sandbox']

    @classmethod
    def from_settings(cls):
        return cls(
            env=getattr(settings, 'MPESA_ENV', 'sandbox'),
            consumer_key=getattr(settings, 'MPESA_CONSUMER_KEY', ''),
            consumer_secret=getattr(settings, 'MPESA_CONSUMER_SECRET', ''),
            shortcode=getattr(settings, 'MPESA_SHORTCODE', '174379'),
            passkey=getattr(settings, 'MPESA_PASSKEY', ''),
            callback_url=getattr(settings, 'MPESA_CALLBACK_URL', ''),
            transaction_type=getattr(settings, 'MPESA_TRANSACTION_TYPE', 'CustomerPayBillOnline'),
            timeout=getattr(settings, 'MPESA_TIMEOUT', 30),
        )

    def require_stk_config(self):
        if not self.passkey:
            raise ConfigurationError("Missing MPESA_PASSKEY")
        if not self.callback_url:
            raise ConfigurationError("Missing MPESA_CALLBACK_URL")

    def access_token(self):
        if not self.consumer_key or not self.consumer_secret:
            raise ConfigurationError("Missing MPESA_CONSUMER_KEY or MPESA_CONSUMER_SECRET")

        url = f"{self.base_url}/oauth/v1/generate?grant_type=client_credentials"
        try:
            resp = requests.get(
                url,
                auth=(self.consumer_key, self.consumer_secret),
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise GatewayError("Failed to reach MPESA OAuth API", details=str(e)) from e

        body = _upstream_body(resp)
        if not resp.ok:
            raise GatewayError(f"MPESA OAuth error: status={resp.status_code}", details=body)
        if not isinstance(body, dict):
            raise GatewayError(f"MPESA OAuth returned non-JSON body: status={resp.status_code}", details=body)
        if not body.get('access_token'):
            raise GatewayError("MPESA OAuth JSON missing access_token", details=body)
        return body['access_token']

    def initiate_payment(self, shortcode, passkey, timestamp, phone, amount, account_reference,
                         transaction_desc, callback_url, token):
        url = f"{self.base_url}/mpesa/stkpush/v1/processrequest"
        headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        payload = {
            "BusinessShortCode": _as_number(shortcode),
            "Password": build_password(shortcode, passkey, timestamp),
            "Timestamp": timestamp,
            "TransactionType": self.transaction_type,
            "Amount": amount,
            "PartyA": _as_number(phone),
            "PartyB": _as_number(shortcode),
            "PhoneNumber": _as_number(phone),
            "CallBackURL": callback_url,
            "AccountReference": account_reference,
            "TransactionDesc": transaction_desc,
        }
        try:
            resp = requests.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise GatewayError("Failed to reach MPESA STK API", details=str(e)) from e

        body = _upstream_body(resp)
        if not resp.ok:
            raise GatewayError(f"MPESA STK push rejected: status={resp.status_code}", details=body)
        if not isinstance(body, dict):
            raise GatewayError("MPESA STK API returned non-JSON body", details=body)
        return body

    def initiate(self, phone, amount, account_reference, transaction_desc):
        self.require_stk_config()
        token = self.access_token()
        return self.initiate_payment(
            shortcode=self.shortcode,
            passkey=self.passkey,
            timestamp=make_timestamp(),
            phone=phone,
            amount=amount,
            account_reference=account_reference,
            transaction_desc=transaction_desc,
            callback_url=self.callback_url,
            token=token,
        )

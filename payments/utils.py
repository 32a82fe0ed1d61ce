import base64
import datetime


def normalize_phone(phone):
    # Accept: 07XXXXXXXX, 7XXXXXXXX, 2547XXXXXXXX, +2547XXXXXXXX
    p = str(phone).strip()
    if p.startswith('+'):
        p = p[1:]
    if p.startswith('0'):
        p = '254' + p[1:]
    elif p.startswith('7'):
        p = '254' + p
    return p


def timestamp(now=None):
    now = now or datetime.datetime.now()
    return now.strftime('%Y%m%d%H%M%S')


def build_password(shortcode, passkey, timestamp):
    raw = f"{shortcode}{passkey}{timestamp}".encode('utf-8')
    return base64.b64encode(raw).decode('utf-8')

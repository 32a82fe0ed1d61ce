import base64
import datetime
import re

from django.test import SimpleTestCase

from payments.utils import build_password, normalize_phone, timestamp


class NormalizePhoneTestCase(SimpleTestCase):

    def test_accepted_shapes_share_canonical_form(self):
        for raw in ('0712345678', '712345678', '254712345678', '+254712345678'):
            with self.subTest(raw=raw):
                self.assertEqual(normalize_phone(raw), '254712345678')

    def test_canonical_form_is_254_plus_nine_digits(self):
        for raw in ('0110000001', '798765432', ' +254700000000 '):
            with self.subTest(raw=raw):
                self.assertRegex(normalize_phone(raw), r'^254\d{9}$')

    def test_numeric_input(self):
        self.assertEqual(normalize_phone(712345678), '254712345678')

    def test_malformed_input_passes_through(self):
        # No validation: odd input comes back unchanged rather than raising
        self.assertEqual(normalize_phone('12345'), '12345')
        self.assertEqual(normalize_phone('+44 20'), '44 20')
        self.assertEqual(normalize_phone(''), '')


class PasswordTestCase(SimpleTestCase):

    def test_timestamp_is_zero_padded(self):
        self.assertEqual(timestamp(datetime.datetime(2024, 1, 2, 3, 4, 5)), '20240102030405')

    def test_timestamp_defaults_to_now(self):
        self.assertTrue(re.fullmatch(r'\d{14}', timestamp()))

    def test_build_password(self):
        password = build_password('174379', 'passkey', '20240102030405')
        self.assertEqual(base64.b64decode(password).decode(), '174379passkey20240102030405')

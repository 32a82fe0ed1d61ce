"""
In-memory STK push transaction ledger.

Records are keyed by the Daraja ``CheckoutRequestID`` and live for the
lifetime of the process. Every operation takes the ledger lock, and callers
only ever receive copies, so the initiation, callback and status views can
hit the same id concurrently.

Optional bounds (both disabled by default):

    ttl:         seconds since the last update after which a record reads
                 as not found and is swept on the next insert.
    max_entries: cap on stored records; the least recently updated one is
                 evicted to make room.
"""

import copy
import enum
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Optional

from django.conf import settings

logger = logging.getLogger(__name__)


class TransactionStatus(str, enum.Enum):
    PENDING = 'PENDING'
    SUCCESS = 'SUCCESS'
    FAILED = 'FAILED'


@dataclass
class TransactionRecord:
    booking_id: str
    phone: str
    amount: Any
    status: TransactionStatus = TransactionStatus.PENDING
    receipt: Optional[str] = None
    result_code: Any = None
    result_desc: Optional[str] = None
    raw: Any = None
    raw_callback: Any = None
    created_at: float = field(default_factory=time.monotonic)
    updated_at: float = field(default_factory=time.monotonic)

    def as_dict(self):
        return {
            'status': self.status.value,
            'bookingId': self.booking_id,
            'phone': self.phone,
            'amount': self.amount,
            'receipt': self.receipt,
            'resultCode': self.result_code,
            'resultDesc': self.result_desc,
            'raw': self.raw,
            'rawCallback': self.raw_callback,
        }


def is_success(result_code):
    # Daraja sends 0 as an int; tolerate "0" from proxies that stringify
    return str(result_code) == '0'


class TransactionLedger:

    def __init__(self, ttl=0, max_entries=0, clock=time.monotonic):
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._records = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._records)

    def insert(self, checkout_request_id: str, record: TransactionRecord) -> None:
        record = copy.deepcopy(record)
        now = self._clock()
        record.status = TransactionStatus.PENDING
        record.created_at = record.updated_at = now

        with self._lock:
            if checkout_request_id in self._records:
                logger.warning("Overwriting existing ledger record %s", checkout_request_id)
            self._records.pop(checkout_request_id, None)
            self._sweep_locked(now)
            while self.max_entries and len(self._records) >= self.max_entries:
                evicted, _ = self._records.popitem(last=False)
                logger.info("Ledger full (%d); evicted %s", self.max_entries, evicted)
            self._records[checkout_request_id] = record

    def apply_callback_result(
        self,
        checkout_request_id: str,
        result_code,
        result_desc=None,
        receipt=None,
        amount=None,
        phone=None,
        raw_callback=None,
    ) -> Optional[TransactionRecord]:
        """
        Move a record to SUCCESS (result code 0) or FAILED.

        Unknown or expired ids are a no-op and return None. Reported receipt,
        amount and phone only replace stored values when present; the result
        fields and raw callback are always replaced. A later callback for the
        same id overwrites an earlier one.
        """
        now = self._clock()
        with self._lock:
            record = self._live_record_locked(checkout_request_id, now)
            if record is None:
                return None

            record.status = TransactionStatus.SUCCESS if is_success(result_code) else TransactionStatus.FAILED
            if receipt is not None:
                record.receipt = receipt
            if amount is not None:
                record.amount = amount
            if phone is not None:
                record.phone = phone
            record.result_code = result_code
            record.result_desc = result_desc
            record.raw_callback = copy.deepcopy(raw_callback)
            record.updated_at = now
            self._records.move_to_end(checkout_request_id)
            return copy.deepcopy(record)

    def get(self, checkout_request_id: str) -> Optional[TransactionRecord]:
        with self._lock:
            record = self._live_record_locked(checkout_request_id, self._clock())
            return copy.deepcopy(record) if record is not None else None

    def clear(self):
        with self._lock:
            self._records.clear()

    def _expired(self, record, now):
        return bool(self.ttl) and now - record.updated_at > self.ttl

    def _live_record_locked(self, checkout_request_id, now):
        record = self._records.get(checkout_request_id)
        if record is not None and self._expired(record, now):
            del self._records[checkout_request_id]
            return None
        return record

    def _sweep_locked(self, now):
        if not self.ttl:
            return
        # Oldest-updated first, so stop at the first live record
        while self._records:
            key, record = next(iter(self._records.items()))
            if not self._expired(record, now):
                break
            del self._records[key]
            logger.debug("Expired ledger record %s", key)


@lru_cache(maxsize=None)
def get_ledger() -> TransactionLedger:
    return TransactionLedger(
        ttl=getattr(settings, 'MPESA_LEDGER_TTL', 0),
        max_entries=getattr(settings, 'MPESA_LEDGER_MAX_ENTRIES', 0),
    )

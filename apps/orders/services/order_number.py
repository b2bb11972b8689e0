"""
Human-readable order numbers.

Format: ``<PREFIX>-<YYMMDD>-<6 hex>``, e.g. ``CAFE-261018-3FA9C2``.
Uniqueness is guaranteed by the database constraint, not by this module;
checkout retries with a fresh number on collision.
"""

import secrets
from datetime import datetime
from typing import Optional

from django.conf import settings
from django.utils import timezone


def build_order_number(*, prefix: Optional[str] = None, now: Optional[datetime] = None) -> str:
    prefix = prefix or settings.POS_ORDER_NUMBER_PREFIX
    now = timezone.localtime(now or timezone.now())
    return f"{prefix}-{now:%y%m%d}-{secrets.token_hex(3).upper()}"

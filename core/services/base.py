"""
Base Service
=============

Foundation for the search engine and booking services: a per-module
logger, the transaction helper and request ids for log correlation.
"""

import logging
import time
import uuid
from django.db import transaction


class BaseService:
    """
    Service classes inherit from this.

    Subclass example::

        class BookingHoldService(BaseService):
            @classmethod
            def hold(cls, space_id, start_date, end_date):
                with cls.atomic():
                    ...

    Features:
        - ``cls.logger`` named after the subclass module
        - ``cls.atomic()`` wraps ``transaction.atomic()``
        - ``cls.generate_request_id()`` tags every log line of one request
        - ``cls.elapsed_ms(started)`` milliseconds since a ``time.monotonic()`` mark
    """

    logger: logging.Logger = logging.getLogger(__name__)

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls.logger = logging.getLogger(cls.__module__)

    @staticmethod
    def atomic():
        return transaction.atomic()

    @staticmethod
    def generate_request_id() -> str:
        return uuid.uuid4().hex[:12]

    @staticmethod
    def elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)

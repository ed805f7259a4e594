"""ORM models."""

from banca.models.bet import Bet
from banca.models.blocked_number import BlockedNumber
from banca.models.exposure_alert import ExposureAlert
from banca.models.exposure_bucket import ExposureBucket
from banca.models.limit_config import LimitConfig

__all__ = ["Bet", "BlockedNumber", "ExposureAlert", "ExposureBucket", "LimitConfig"]

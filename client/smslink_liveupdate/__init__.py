"""
SMSLink Live Update Client

A Python client library for the SMSLink Live Update API: blacklist and
contact group management for an SMS marketing account.
"""

from .live_update import LiveUpdateClient, LiveUpdateConfig, LiveUpdateConfigError
from .phone import normalize_phone_number
from .responses import (
    RESPONSE_CODES,
    SERVICE_IDS,
    BlacklistCheckResult,
    ParsedResponse,
    describe_response_code,
    parse_wire,
)
from .transports import TransportMode

__all__ = [
    'LiveUpdateClient',
    'LiveUpdateConfig',
    'LiveUpdateConfigError',
    'TransportMode',
    'ParsedResponse',
    'BlacklistCheckResult',
    'parse_wire',
    'normalize_phone_number',
    'describe_response_code',
    'RESPONSE_CODES',
    'SERVICE_IDS',
]

__version__ = "0.1.0"

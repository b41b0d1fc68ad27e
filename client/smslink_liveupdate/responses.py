"""
Live Update response handling

The remote service answers every request with a single text line:

    CATEGORY;CODE;MESSAGE;PARAM1,PARAM2,...

CATEGORY is "MESSAGE" on success and anything else (usually "ERROR") on
failure. Transports and client-side validation synthesize bodies in the same
grammar, so every result goes through the same parser.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence, Tuple

SUCCESS_CATEGORY = "MESSAGE"
ERROR_CATEGORY = "ERROR"

DEFAULT_CATEGORY = ERROR_CATEGORY
DEFAULT_CODE = 0
DEFAULT_MESSAGE = "Unknown Error"

FIELD_SEPARATOR = ";"
PARAM_SEPARATOR = ","

_LEADING_INT = re.compile(r"\s*[+-]?[0-9]+")

# Known remote response codes per operation mode. The parser never branches on
# these; they exist so callers can turn a code into a readable explanation.
RESPONSE_CODES: Dict[str, Dict[int, str]] = {
    "blacklist-add": {
        14: "Phone Number is already blacklisted.",
    },
    "blacklist-remove": {
        12: "Phone Number is not blacklisted.",
    },
    "blacklist-verify": {
        12: "Phone Number is blacklisted for all services.",
        13: "Phone Number is blacklisted for the services listed in the response parameters.",
        14: "Phone Number is not blacklisted.",
    },
    "receiver-add": {
        10: "Permission denied to specified group.",
        15: "Phone Number already exists in the specified group.",
        22: "Phone Number already exists in groups.",
        30: "Permission denied for the specified Live Update method.",
    },
    "receiver-update": {
        24: "Permission denied to specified group.",
        25: "Phone Number not found.",
        26: "No associated data passed for updating.",
        30: "Permission denied for the specified Live Update method.",
    },
    "receiver-remove": {
        13: "Permission denied to specified group.",
        17: "Invalid specified group.",
        30: "Permission denied for the specified Live Update method.",
        32: "Phone Number not found.",
        33: "Phone Number not found.",
    },
}

# Messaging channels of an account, as used by blacklist service_ids
SERVICE_IDS: Dict[int, str] = {
    1: "SMS Marketing",
    2: "Mail to SMS",
    3: "SMS Gateway (HTTP)",
    4: "SMS Alerts",
    5: "2-Way SMS",
    7: "SMS Connectors",
    9: "SMS Gateway (BULK)",
    10: "SMS Gateway (SOAP)",
    11: "SMS Gateway (JSON)",
}


@dataclass(frozen=True)
class ParsedResponse:
    """Structured form of a Live Update response line."""

    response_status: bool
    response_category: str
    response_code: int
    response_message: str
    response_params: Tuple[str, ...] = field(default_factory=tuple)

    def to_wire(self) -> str:
        """Serialize back into the CATEGORY;CODE;MESSAGE;PARAMS grammar."""
        return FIELD_SEPARATOR.join([
            self.response_category,
            str(self.response_code),
            self.response_message,
            PARAM_SEPARATOR.join(self.response_params),
        ])

    def as_dict(self) -> Dict:
        return {
            "responseStatus": self.response_status,
            "responseCategory": self.response_category,
            "responseCode": self.response_code,
            "responseMessage": self.response_message,
            "responseParams": list(self.response_params),
        }


@dataclass(frozen=True)
class BlacklistCheckResult(ParsedResponse):
    """ParsedResponse of a blacklist-verify request plus its interpretation."""

    is_request_error: bool = True
    is_blacklisted: bool = False

    def as_dict(self) -> Dict:
        data = {
            "isRequestError": self.is_request_error,
            "isBlacklisted": self.is_blacklisted,
        }
        data.update(super().as_dict())
        return data


def _parse_code(value: str) -> int:
    """Leading integer of a code field, like "12abc" -> 12; 0 when there is none."""
    match = _LEADING_INT.match(value)
    return int(match.group(0)) if match else DEFAULT_CODE


def parse_wire(raw: Optional[str]) -> ParsedResponse:
    """
    Parse a raw response body.

    The body is split on every ";" and only the first four fields are used.
    Absent or empty fields fall back to ERROR / 0 / "Unknown Error" / [].

    Args:
        raw: Response body as returned by the remote service or a transport

    Returns:
        ParsedResponse: response_status is True only for the "MESSAGE" category
    """
    raw = (raw or "").rstrip("\r\n")
    fields = raw.split(FIELD_SEPARATOR)
    fields += [""] * (4 - len(fields))
    category, code, message, params = fields[:4]

    category = category or DEFAULT_CATEGORY
    return ParsedResponse(
        response_status=category == SUCCESS_CATEGORY,
        response_category=category,
        response_code=_parse_code(code) if code else DEFAULT_CODE,
        response_message=message or DEFAULT_MESSAGE,
        response_params=tuple(params.split(PARAM_SEPARATOR)) if params else (),
    )


def synthesize_local(status: bool = False, category: str = DEFAULT_CATEGORY,
                     code: int = DEFAULT_CODE, message: str = DEFAULT_MESSAGE,
                     params: Sequence[str] = ()) -> ParsedResponse:
    """Build a response for a request that never left the client."""
    return ParsedResponse(
        response_status=bool(status),
        response_category=category or DEFAULT_CATEGORY,
        response_code=int(code),
        response_message=message or DEFAULT_MESSAGE,
        response_params=tuple(str(param) for param in params),
    )


def interpret_blacklist_check(response: ParsedResponse) -> BlacklistCheckResult:
    """
    Derive the blacklist verdict from a blacklist-verify response.

    Codes 12 and 13 mean blacklisted, 14 means not blacklisted. A failed
    request, or any other code, is reported as a request error.
    """
    is_request_error = True
    is_blacklisted = False
    if response.response_status:
        if response.response_code in (12, 13):
            is_request_error = False
            is_blacklisted = True
        elif response.response_code == 14:
            is_request_error = False

    return BlacklistCheckResult(
        response_status=response.response_status,
        response_category=response.response_category,
        response_code=response.response_code,
        response_message=response.response_message,
        response_params=response.response_params,
        is_request_error=is_request_error,
        is_blacklisted=is_blacklisted,
    )


def describe_response_code(mode: str, code: int) -> Optional[str]:
    """Return the documented meaning of a remote code for an operation mode."""
    return RESPONSE_CODES.get(mode, {}).get(int(code))

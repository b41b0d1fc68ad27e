"""
Request dispatching for the Live Update API

Merges the account credentials into the operation parameters, picks the
endpoint and transport from the client settings, records an audit entry for
every request and parses the raw result.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from .responses import ParsedResponse, parse_wire
from .transports import (
    DEFAULT_TIMEOUT,
    ParameterMap,
    Transport,
    TransportMode,
    build_transport,
)

logger = logging.getLogger(__name__)

HTTP_ENDPOINT = "http://www.smslink.ro/sms/marketing/communicate/index.php"
HTTPS_ENDPOINT = "https://secure.smslink.ro/sms/marketing/communicate/index.php"

LOCAL_VALIDATION_LABEL = "local validation"


@dataclass(frozen=True)
class Credentials:
    connection_id: str
    password: str

    def as_params(self) -> ParameterMap:
        return {"connection_id": self.connection_id, "password": self.password}


class LiveUpdateSettings:
    """Mutable transport settings shared by a client and its dispatcher"""

    def __init__(self):
        self.use_https: bool = True
        self.transport_mode: TransportMode = TransportMode.QUERY_GET
        self.timeout: Optional[float] = DEFAULT_TIMEOUT
        self.verify_tls: bool = True
        self.http_endpoint: str = HTTP_ENDPOINT
        self.https_endpoint: str = HTTPS_ENDPOINT

    @property
    def endpoint(self) -> str:
        return self.https_endpoint if self.use_https else self.http_endpoint


@dataclass(frozen=True)
class AuditLogEntry:
    timestamp: datetime
    transport_label: str
    target: str
    raw_result: str

    def format(self) -> str:
        return (
            f"{self.timestamp.strftime('%d-%m-%Y %H:%M:%S')} - Sending Request using "
            f"{self.transport_label} to URL: [{self.target}] => Request Result: [{self.raw_result}]"
        )

    def __str__(self) -> str:
        return self.format()


class AuditLog:
    """Append-only record of every request made by one client"""

    def __init__(self):
        self._entries: List[AuditLogEntry] = []

    def append(self, transport_label: str, target: str, raw_result: str) -> AuditLogEntry:
        entry = AuditLogEntry(datetime.now(), transport_label, target, raw_result)
        self._entries.append(entry)
        return entry

    def entries(self) -> Tuple[AuditLogEntry, ...]:
        return tuple(self._entries)

    def last(self) -> Optional[AuditLogEntry]:
        return self._entries[-1] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(tuple(self._entries))


class RequestDispatcher:
    """Sends operation parameters to the Live Update endpoint"""

    def __init__(self, credentials: Credentials, settings: LiveUpdateSettings,
                 audit_log: AuditLog,
                 transport_overrides: Optional[Dict[TransportMode, Transport]] = None,
                 transport_factory: Callable[..., Transport] = build_transport):
        self.credentials = credentials
        self.settings = settings
        self.audit_log = audit_log
        self._transport_overrides = dict(transport_overrides or {})
        self._transport_factory = transport_factory

    def transport(self) -> Transport:
        """Transport for the currently configured mode"""
        mode = self.settings.transport_mode
        if mode in self._transport_overrides:
            return self._transport_overrides[mode]
        return self._transport_factory(
            mode,
            timeout=self.settings.timeout,
            verify_tls=self.settings.verify_tls,
        )

    def build_params(self, operation_params: ParameterMap) -> ParameterMap:
        """Credentials first, then the operation fields in their given order."""
        params = self.credentials.as_params()
        params.update(operation_params)
        return params

    def send(self, operation_params: ParameterMap) -> ParsedResponse:
        url = self.settings.endpoint
        params = self.build_params(operation_params)
        transport = self.transport()

        raw_result = transport.execute(url, params)
        self.audit_log.append(transport.label, transport.describe_target(url, params), raw_result)

        response = parse_wire(raw_result)
        logger.info(
            f"Live Update request mode={operation_params.get('mode')} transport={transport.label} "
            f"category={response.response_category} code={response.response_code}"
        )
        return response

    def record_local(self, operation: str, response: ParsedResponse) -> ParsedResponse:
        """Record a response that was produced without a network round trip."""
        self.audit_log.append(LOCAL_VALIDATION_LABEL, operation, response.to_wire())
        logger.info(f"Live Update request rejected locally: {operation}: {response.response_message}")
        return response

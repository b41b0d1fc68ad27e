"""
SMSLink Live Update client

This module provides the public client for managing the blacklist and the
contact groups of an SMSLink account through the Live Update API.
"""

import json
import logging
import os
from typing import Dict, Iterable, Optional, Tuple, Union

from .dispatcher import (
    AuditLog,
    AuditLogEntry,
    Credentials,
    LiveUpdateSettings,
    RequestDispatcher,
)
from .phone import normalize_phone_number
from .responses import (
    ERROR_CATEGORY,
    BlacklistCheckResult,
    ParsedResponse,
    interpret_blacklist_check,
    synthesize_local,
)
from .transports import DEFAULT_TIMEOUT, Transport, TransportMode

logger = logging.getLogger(__name__)

MAX_CONTACT_VARIABLES = 25

# Added by the dispatcher to every request
RESERVED_PARAMETERS = ("connection_id", "password")

PROTOCOLS = ("HTTPS", "HTTP")


class LiveUpdateConfigError(ValueError):
    """Raised when the client cannot be configured"""


def get_default_config_path() -> str:
    """Get the default config file path following XDG standards"""
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return os.path.join(xdg_config_home, "smslink_liveupdate", "config.json")

    home = os.environ.get("HOME")
    if home:
        return os.path.join(home, ".config", "smslink_liveupdate", "config.json")

    return os.path.join(os.getcwd(), ".config", "smslink_liveupdate", "config.json")


class LiveUpdateConfig:
    """Configuration for the Live Update client"""

    def __init__(self, config_path: Optional[str] = None):
        if config_path is None:
            config_path = os.environ.get("LIVEUPDATE_CONFIG") or get_default_config_path()

        self.config_path = config_path
        self.connection_id: str = ""
        self.password: str = ""
        self.protocol: str = "HTTPS"
        self.transport_mode: Union[str, int] = TransportMode.QUERY_GET.name
        self.timeout: Optional[float] = DEFAULT_TIMEOUT
        self.verify_tls: bool = True
        self.http_endpoint: Optional[str] = None
        self.https_endpoint: Optional[str] = None

        self._load_config()

    def _load_config(self):
        """Load configuration from file"""
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            config_data = json.load(f)

        env_fallbacks = {
            'connection_id': 'LIVEUPDATE_CONNECTION_ID',
            'password': 'LIVEUPDATE_PASSWORD',
        }
        for field, env_name in env_fallbacks.items():
            value = config_data.get(field) or os.environ.get(env_name)
            if not value:
                raise LiveUpdateConfigError(f"Missing required config field: {field}")
            setattr(self, field, value)

        # Optional fields
        self.protocol = config_data.get('protocol', self.protocol)
        self.transport_mode = config_data.get('transport_mode', self.transport_mode)
        self.timeout = config_data.get('timeout', self.timeout)
        self.verify_tls = bool(config_data.get('verify_tls', self.verify_tls))
        self.http_endpoint = config_data.get('http_endpoint')
        self.https_endpoint = config_data.get('https_endpoint')


class LiveUpdateClient:
    """
    Client for the SMSLink Live Update API.

    Every operation normalizes the phone number, validates its arguments and
    then makes at most one request. Nothing is raised after construction:
    validation failures, transport failures and remote errors all come back
    as a ParsedResponse with response_status False.

    Example:
        client = LiveUpdateClient("MyConnectionID", "MyPassword")
        result = client.blacklist_add("+40 7xx xxx xxx")
        if not result.response_status:
            print(result.response_code, result.response_message)
    """

    def __init__(self, connection_id: str, password: str,
                 transports: Optional[Dict[TransportMode, Transport]] = None):
        if not connection_id or not password:
            raise LiveUpdateConfigError(
                "Live Update initialization failed, credentials not provided"
            )

        self._settings = LiveUpdateSettings()
        self._audit_log = AuditLog()
        self._dispatcher = RequestDispatcher(
            Credentials(connection_id, password),
            self._settings,
            self._audit_log,
            transport_overrides=transports,
        )

    @classmethod
    def from_config(cls, config: LiveUpdateConfig,
                    transports: Optional[Dict[TransportMode, Transport]] = None) -> "LiveUpdateClient":
        """Build a client from a loaded LiveUpdateConfig"""
        client = cls(config.connection_id, config.password, transports=transports)

        if not client.set_protocol(config.protocol):
            logger.warning(f"Ignoring unknown protocol in config: {config.protocol}")
        if not client.set_transport_mode(config.transport_mode):
            logger.warning(f"Ignoring unknown transport mode in config: {config.transport_mode}")

        if not client.set_timeout(config.timeout):
            logger.warning(f"Ignoring invalid timeout in config: {config.timeout!r}")

        client.set_verify_tls(config.verify_tls)
        client.set_endpoints(http=config.http_endpoint, https=config.https_endpoint)
        return client

    # Configuration

    def set_transport_mode(self, mode: Union[TransportMode, int, str] = TransportMode.QUERY_GET) -> bool:
        """
        Set the way requests are sent.

        Args:
            mode: TransportMode, its code (1 GET, 2 POST, 3 simple fetch) or its name

        Returns:
            bool: True if the mode was set, False if it was not recognized
        """
        resolved = TransportMode.coerce(mode)
        if resolved is None:
            return False
        self._settings.transport_mode = resolved
        return True

    def get_transport_mode(self) -> TransportMode:
        return self._settings.transport_mode

    def set_protocol(self, protocol: str = "HTTPS") -> bool:
        """
        Set the protocol used to reach the endpoint, "HTTPS" or "HTTP".

        Returns:
            bool: True if the protocol was set, False if it was not recognized
        """
        if not isinstance(protocol, str):
            return False
        protocol = protocol.strip().upper()
        if protocol not in PROTOCOLS:
            return False
        self._settings.use_https = protocol == "HTTPS"
        return True

    def get_protocol(self) -> str:
        return "HTTPS" if self._settings.use_https else "HTTP"

    def set_timeout(self, timeout: Optional[float]) -> bool:
        """
        Set the timeout in seconds for the requests based transports.

        Args:
            timeout: A positive number of seconds, or None to wait forever

        Returns:
            bool: True if the timeout was set, False if it was not valid
        """
        if timeout is not None:
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
                return False
            if not timeout > 0 or timeout == float("inf"):
                return False
        self._settings.timeout = timeout
        return True

    def get_timeout(self) -> Optional[float]:
        return self._settings.timeout

    def set_endpoints(self, http: Optional[str] = None, https: Optional[str] = None) -> None:
        """Override the HTTP and/or HTTPS endpoint URLs; None keeps the current one."""
        if http:
            self._settings.http_endpoint = http
        if https:
            self._settings.https_endpoint = https

    def get_endpoint(self) -> str:
        """Endpoint URL for the current protocol"""
        return self._settings.endpoint

    def set_verify_tls(self, verify_tls: bool) -> None:
        """
        Enable or disable TLS certificate verification.

        Disabling it reproduces the trust model of the legacy integration and
        should only be used against endpoints you trust by other means.
        """
        if not verify_tls:
            logger.warning("TLS certificate verification disabled for Live Update requests")
        self._settings.verify_tls = bool(verify_tls)

    # Audit log

    def get_log_messages(self) -> Tuple[AuditLogEntry, ...]:
        return self._audit_log.entries()

    def get_last_log_message(self) -> Optional[AuditLogEntry]:
        return self._audit_log.last()

    # Helpers

    def _reject(self, operation: str, reason: str) -> ParsedResponse:
        response = synthesize_local(
            False, ERROR_CATEGORY, 0, f"Error Thrown in {operation}: {reason}."
        )
        return self._dispatcher.record_local(operation, response)

    @staticmethod
    def _add_contact_variables(params: Dict, contact_variables: Optional[Dict[str, str]]):
        # Variables go last and win on a name clash, as the remote API expects
        # them as plain top-level parameters.
        for name, value in (contact_variables or {}).items():
            if name in params or name in RESERVED_PARAMETERS:
                logger.warning(f"Contact variable overrides request parameter: {name}")
            params[name] = value

    # Blacklist

    def blacklist_add(self, phone_number: str, service_ids: Iterable[int] = (),
                      force_update: bool = True) -> ParsedResponse:
        """
        Add a phone number to the blacklist.

        Args:
            phone_number: Phone number to blacklist
            service_ids: Services to blacklist the number for, empty for all
                services (see responses.SERVICE_IDS)
            force_update: Update the entry if the number is already blacklisted

        Returns:
            ParsedResponse: Remote response, or a local validation error
        """
        phone_number = normalize_phone_number(phone_number)
        if not phone_number:
            return self._reject("blacklist_add", "Invalid Phone Number")

        params = {
            "mode": "blacklist-add",
            "receiver_number": phone_number,
            "force_update": 1 if force_update else 0,
        }
        service_ids = [str(service_id) for service_id in service_ids or ()]
        if service_ids:
            params["service_ids"] = ",".join(service_ids)

        return self._dispatcher.send(params)

    def blacklist_remove(self, phone_number: str) -> ParsedResponse:
        """Remove a phone number from the blacklist."""
        phone_number = normalize_phone_number(phone_number)
        if not phone_number:
            return self._reject("blacklist_remove", "Invalid Phone Number")

        return self._dispatcher.send({
            "mode": "blacklist-remove",
            "receiver_number": phone_number,
        })

    def is_blacklisted(self, phone_number: str) -> BlacklistCheckResult:
        """
        Check whether a phone number is in the blacklist.

        Returns:
            BlacklistCheckResult: is_request_error is False only when the
            service answered with a blacklist verdict (codes 12, 13 or 14)
        """
        phone_number = normalize_phone_number(phone_number)
        if not phone_number:
            return interpret_blacklist_check(self._reject("is_blacklisted", "Invalid Phone Number"))

        response = self._dispatcher.send({
            "mode": "blacklist-verify",
            "receiver_number": phone_number,
        })
        return interpret_blacklist_check(response)

    # Contacts

    def create_contact(self, phone_number: str, group_id: int, name: Optional[str] = None,
                       contact_variables: Optional[Dict[str, str]] = None,
                       allow_duplicate: bool = False, duplicate_scope: int = 1) -> ParsedResponse:
        """
        Create a contact in a group.

        Args:
            phone_number: Contact phone number
            group_id: Group the contact is created in, must not be 0
            name: Full name of the contact
            contact_variables: Up to 25 named values, each sent as its own parameter.
                A name equal to a request field (mode, receiver_number, ...)
                replaces that field and logs a warning
            allow_duplicate: Accept the number even if it already exists
            duplicate_scope: 1 to check duplicates inside the group, 2 across all groups

        Returns:
            ParsedResponse: Remote response, or a local validation error
        """
        phone_number = normalize_phone_number(phone_number)
        if not phone_number:
            return self._reject("create_contact", "Invalid Phone Number")
        if not group_id:
            return self._reject("create_contact", "Invalid Group ID")
        if contact_variables and len(contact_variables) > MAX_CONTACT_VARIABLES:
            return self._reject("create_contact", "Too many contact variables")

        params = {
            "mode": "receiver-add",
            "receiver_number": phone_number,
            "group_id": group_id,
            "duplicate": 0 if allow_duplicate else 1,
            "duplicate_scope": duplicate_scope,
            "receiver_name": name if name is not None else "",
        }
        self._add_contact_variables(params, contact_variables)

        return self._dispatcher.send(params)

    def update_contact(self, phone_number: str, group_id: int = 0, name: Optional[str] = None,
                       contact_variables: Optional[Dict[str, str]] = None) -> ParsedResponse:
        """
        Update a contact in a group, or in all groups when group_id is 0.

        Contact variables are sent as top-level parameters, like in create_contact.
        """
        phone_number = normalize_phone_number(phone_number)
        if not phone_number:
            return self._reject("update_contact", "Invalid Phone Number")
        if contact_variables and len(contact_variables) > MAX_CONTACT_VARIABLES:
            return self._reject("update_contact", "Too many contact variables")

        params = {
            "mode": "receiver-update",
            "receiver_number": phone_number,
            "group_id": group_id,
            "receiver_name": name if name is not None else "",
        }
        self._add_contact_variables(params, contact_variables)

        return self._dispatcher.send(params)

    def remove_contact(self, phone_number: str, group_id: int = 0) -> ParsedResponse:
        """Remove a contact from a group, or from all groups when group_id is 0."""
        phone_number = normalize_phone_number(phone_number)
        if not phone_number:
            return self._reject("remove_contact", "Invalid Phone Number")

        return self._dispatcher.send({
            "mode": "receiver-remove",
            "receiver_number": phone_number,
            "group_id": group_id,
        })

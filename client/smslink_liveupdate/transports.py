"""
Transports for Live Update requests

Three interchangeable ways of issuing the HTTP request. Every transport makes
exactly one attempt and never raises: failures come back as a synthesized
"ERROR;0;<reason>" body that the response parser handles like any other.
"""

import enum
import http.client
import logging
import urllib.error
import urllib.request
import warnings
from typing import Dict, Optional, Union
from urllib.parse import urlencode

import requests
from urllib3.exceptions import InsecureRequestWarning

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30

ParameterMap = Dict[str, Union[str, int]]


class TransportMode(enum.Enum):
    """Request strategies, numbered like the legacy request-method codes."""

    QUERY_GET = 1
    BODY_POST = 2
    SIMPLE_FETCH = 3

    @classmethod
    def coerce(cls, value) -> Optional["TransportMode"]:
        """Resolve a mode, its integer code or its name; None if unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                return None
        if isinstance(value, str):
            name = value.strip().upper().replace("-", "_")
            if name.isdigit():
                return cls.coerce(int(name))
            return cls.__members__.get(name)
        return None


def error_body(reason) -> str:
    """Wrap a failure reason in the wire grammar."""
    reason = str(reason).replace(";", ",").replace("\r", " ").replace("\n", " ")
    return f"ERROR;0;{reason}"


def encode_parameters(params: ParameterMap) -> str:
    return urlencode(params)


class Transport:
    """Base class for transports"""

    mode: TransportMode
    label: str = ""

    def __init__(self, timeout: Optional[float] = DEFAULT_TIMEOUT, verify_tls: bool = True):
        self.timeout = timeout
        self.verify_tls = verify_tls

    def execute(self, url: str, params: ParameterMap) -> str:
        """Send the request and return the raw body or a synthesized error body."""
        raise NotImplementedError

    def describe_target(self, url: str, params: ParameterMap) -> str:
        """Describe where the request goes, for the audit log."""
        return f"{url}?{encode_parameters(params)}"


class _RequestsTransport(Transport):
    """Shared handling for the requests based transports"""

    def _request(self, method: str, url: str, **kwargs) -> str:
        with warnings.catch_warnings():
            if not self.verify_tls:
                warnings.simplefilter("ignore", InsecureRequestWarning)
            try:
                response = requests.request(
                    method,
                    url,
                    timeout=self.timeout,
                    verify=self.verify_tls,
                    allow_redirects=True,
                    **kwargs
                )
            except (requests.exceptions.RequestException, http.client.HTTPException, ValueError) as e:
                logger.warning(f"{self.label} request failed: {type(e).__name__}")
                return error_body(e)

        if not 200 <= response.status_code <= 299:
            logger.warning(f"{self.label} request returned HTTP {response.status_code}")
            return error_body(f"Unexpected HTTP code {response.status_code}")

        return response.text


class QueryGetTransport(_RequestsTransport):
    """GET with the parameters in the query string"""

    mode = TransportMode.QUERY_GET
    label = "requests GET"

    def execute(self, url: str, params: ParameterMap) -> str:
        return self._request("GET", self.describe_target(url, params))


class BodyPostTransport(_RequestsTransport):
    """POST with the parameters form-encoded in the body"""

    mode = TransportMode.BODY_POST
    label = "requests POST"

    def execute(self, url: str, params: ParameterMap) -> str:
        return self._request(
            "POST",
            url,
            data=encode_parameters(params),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

    def describe_target(self, url: str, params: ParameterMap) -> str:
        return f"{url} with POST parameters: [{encode_parameters(params)}]"


class SimpleFetchTransport(Transport):
    """
    Plain urllib GET.

    Meant for environments where requests is unavailable or undesired. It
    applies no custom TLS handling and no explicit timeout.
    """

    mode = TransportMode.SIMPLE_FETCH
    label = "urllib urlopen()"

    def execute(self, url: str, params: ParameterMap) -> str:
        try:
            with urllib.request.urlopen(self.describe_target(url, params)) as response:
                status = response.getcode()
                body = response.read()
                charset = response.headers.get_content_charset() or "utf-8"
        except urllib.error.HTTPError as e:
            logger.warning(f"{self.label} request returned HTTP {e.code}")
            return error_body(f"Unexpected HTTP code {e.code}")
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
            logger.warning(f"{self.label} request failed: {type(e).__name__}")
            return error_body(f"Connection failed using urlopen(): {e}")

        if status is not None and not 200 <= status <= 299:
            return error_body(f"Unexpected HTTP code {status}")

        try:
            return body.decode(charset, errors="replace")
        except LookupError:
            return body.decode("utf-8", errors="replace")


TRANSPORTS = {
    TransportMode.QUERY_GET: QueryGetTransport,
    TransportMode.BODY_POST: BodyPostTransport,
    TransportMode.SIMPLE_FETCH: SimpleFetchTransport,
}


def build_transport(mode: TransportMode, timeout: Optional[float] = DEFAULT_TIMEOUT,
                    verify_tls: bool = True) -> Transport:
    """Instantiate the transport registered for a mode."""
    return TRANSPORTS[mode](timeout=timeout, verify_tls=verify_tls)

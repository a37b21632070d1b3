"""Request - Sends one authenticated request to the Wesabe API and classifies the response.

A Client holds an immutable ClientConfig (base URL, CA bundle, timeout). Each
Request is built from a Client plus per-call options, executed once, and
returns one of the Outcome variants from wesabe.models.

Usage:
    client = Client(ClientConfig(base_url="https://www.wesabe.com"))
    outcome = client.execute(url="/accounts.xml", username="jo", password="secret")
    if isinstance(outcome, Success):
        print(outcome.body)
"""

from __future__ import annotations

import logging
import platform
import re
import ssl
import sys
from typing import Any

import httpx
from pydantic import ValidationError

from wesabe.errors import (
    ConfigError,
    RequestTimeout,
    ServerBrokeConnection,
    TransportError,
    WesabeError,
)
from wesabe.models import (
    ClientConfig,
    Outcome,
    Redirect,
    RequestConfig,
    RequestFailed,
    ResourceNotFound,
    Success,
    Unauthorized,
)
from wesabe.trust import resolve_ca_file

logger = logging.getLogger(__name__)

VERSION = "0.1.0"

USER_AGENT = (
    f"Wesabe-PythonPackage/{VERSION} "
    f"({platform.python_implementation()} {platform.python_version()}; {sys.platform})"
)
DEFAULT_HEADERS = {"User-Agent": USER_AGENT}

SUCCESS_CODES = frozenset({200, 201, 202})
REDIRECT_CODES = frozenset({301, 302, 303})

_REPEATED_SLASHES = re.compile(r"/{2,}")


class Client:
    """Entry point for requests sharing one ClientConfig.

    The CA bundle is resolved on the first https request and reused for every
    later request made through this client.
    """

    def __init__(self, config: ClientConfig | None = None) -> None:
        self._config = config or ClientConfig()
        self._ssl_context: ssl.SSLContext | None = None

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def base_url(self) -> str:
        return self._config.base_url

    def with_base_url(self, base_url: str) -> Client:
        """Return a new client resolving against *base_url*.

        Requests already built from this client are unaffected.
        """
        return Client(self._config.with_base_url(base_url))

    def ssl_context(self) -> ssl.SSLContext:
        """Build (once) an SSL context that trusts only the pinned CA bundle.

        Raises:
            ConfigError: If no usable CA bundle exists.
        """
        if self._ssl_context is None:
            ca_file = resolve_ca_file(self._config.ca_file)
            try:
                self._ssl_context = ssl.create_default_context(cafile=str(ca_file))
            except (ssl.SSLError, OSError) as e:
                raise ConfigError(f"Unusable CA file {ca_file}: {e}") from e
        return self._ssl_context

    def request(self, **options: Any) -> Request:
        """Build a Request. See RequestConfig for the accepted options."""
        return Request.build(self, **options)

    def execute(self, **options: Any) -> Outcome:
        """Build a Request and execute it in one call."""
        return self.request(**options).execute()


class Request:
    """One request against the API.

    Build one with Client.request() or Request.build(), which validate raw
    options and raise ConfigError. The constructor takes a RequestConfig that
    is already valid (constructing an invalid RequestConfig raises pydantic's
    ValidationError). Either way the target URL is resolved here and nothing
    touches the network until execute().
    """

    def __init__(self, config: RequestConfig, client: Client | None = None) -> None:
        self._config = config
        self._client = client or Client()
        self._executed = False

        try:
            self._uri = httpx.URL(self._client.base_url).join(config.url)
        except httpx.InvalidURL as e:
            raise ConfigError(f"Invalid url '{config.url}': {e}") from e

        # Credentials embedded in the URL take precedence over the options.
        self._username = self._uri.username or config.username
        self._password = self._uri.password or config.password

    @classmethod
    def build(cls, client: Client | None = None, **options: Any) -> Request:
        """Validate *options* into a RequestConfig and build a Request.

        Raises:
            ConfigError: If url, username or password is missing or empty,
                the method is not a known HTTP method, or the proxy is not a
                scheme://host URL.
        """
        try:
            config = RequestConfig.model_validate(options)
        except ValidationError as e:
            raise ConfigError(f"Invalid request options: {e}") from e
        return cls(config, client)

    @property
    def config(self) -> RequestConfig:
        return self._config

    @property
    def uri(self) -> httpx.URL:
        return self._uri

    @property
    def method(self) -> str:
        return self._config.method

    @property
    def username(self) -> str:
        return self._username

    @property
    def password(self) -> str:
        return self._password

    def _build_client_kwargs(self) -> dict[str, Any]:
        """Build kwargs for httpx.Client including proxy and TLS configuration.

        Raises:
            ConfigError: If the target is https and no CA bundle is usable.
        """
        kwargs: dict[str, Any] = {
            "headers": DEFAULT_HEADERS,
            "timeout": self._client.config.timeout,
            "follow_redirects": False,
        }

        if self._config.proxy:
            kwargs["proxy"] = self._config.proxy

        if self._uri.scheme == "https":
            kwargs["verify"] = self._client.ssl_context()

        return kwargs

    def execute(self) -> Outcome:
        """Execute the request and classify the response.

        Returns:
            Success, Redirect, Unauthorized, ResourceNotFound or RequestFailed.

        Raises:
            ConfigError: If the CA bundle is missing (before any I/O).
            RequestTimeout: If the request takes too long.
            ServerBrokeConnection: If the connection is refused or breaks.
            TransportError: For any other transport failure.
            WesabeError: If this request was already executed.
        """
        if self._executed:
            raise WesabeError("Request has already been executed")
        self._executed = True

        kwargs = self._build_client_kwargs()
        target = self._display_url()
        logger.debug("%s %s", self.method, target)

        try:
            with httpx.Client(**kwargs) as http:
                response = http.request(
                    self.method,
                    self._uri,
                    content=self._config.payload or "",
                    auth=httpx.BasicAuth(self._username, self._password),
                )
                return self._process_response(response)
        except httpx.TimeoutException as e:
            raise RequestTimeout(f"{self.method} {target} timed out: {e}") from e
        except (httpx.ConnectError, httpx.ReadError, httpx.WriteError, httpx.RemoteProtocolError) as e:
            raise ServerBrokeConnection(f"{self.method} {target} connection broken: {e}") from e
        except httpx.RequestError as e:
            raise TransportError(f"{self.method} {target} request error: {e}") from e

    def _process_response(self, response: httpx.Response) -> Outcome:
        status = response.status_code
        logger.debug("%s %s -> %d", self.method, self._display_url(), status)

        if status in SUCCESS_CODES:
            return Success(body=response.text)
        if status in REDIRECT_CODES:
            return Redirect(location=self._redirect_location(response.headers.get("location")))
        if status == 401:
            return Unauthorized()
        if status == 404:
            return ResourceNotFound()

        return RequestFailed(
            status_code=status,
            headers={key.lower(): value for key, value in response.headers.items()},
            body=response.text,
        )

    def _redirect_location(self, location: str | None) -> str:
        """Turn a Location header into an absolute URL.

        Absolute locations pass through. Anything else is a path that replaces
        the path of the url this request was built with (not the resolved
        URI), with repeated slashes collapsed. The query of the original url
        is kept unless the location has its own.
        """
        location = location or ""
        if location.startswith("http"):
            return location

        path, _, query = location.partition("?")
        path = _REPEATED_SLASHES.sub("/", f"/{path}")
        if not query:
            query = httpx.URL(self._config.url).query.decode("ascii")
        merged = f"{path}?{query}" if query else path

        return str(httpx.URL(f"{self._uri.scheme}://{self._uri.netloc.decode('ascii')}{merged}"))

    def _display_url(self) -> str:
        """Resolved URL without userinfo, for logs and error messages."""
        return (
            f"{self._uri.scheme}://{self._uri.netloc.decode('ascii')}"
            f"{self._uri.raw_path.decode('ascii')}"
        )


_default_client = Client()


def execute(**options: Any) -> Outcome:
    """Build and execute a request against the default base URL.

    Accepts the same options as RequestConfig: url, username, password
    (required); proxy, method, payload (optional).
    """
    return _default_client.execute(**options)

"""Internal data models for wesabe.

All models use Pydantic v2 and are frozen: a config or outcome never changes
after construction.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from wesabe.errors import (
    OutcomeError,
    RedirectError,
    RequestFailedError,
    ResourceNotFoundError,
    UnauthorizedError,
)
from wesabe.xml_body import extract_error_message


DEFAULT_BASE_URL = "https://www.wesabe.com"
DEFAULT_TIMEOUT = 30.0

HTTP_METHODS = frozenset({"GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"})
PROXY_SCHEMES = frozenset({"http", "https"})


# =============================================================================
# Configuration Models
# =============================================================================


class ClientConfig(BaseModel):
    """Settings shared by every request made through one Client.

    Replaces a process-wide base URL: derive a new config with
    with_base_url() instead of mutating this one.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    base_url: str = Field(
        default=DEFAULT_BASE_URL, min_length=1, description="Base URL relative request urls resolve against"
    )
    ca_file: str | None = Field(
        default=None, description="Explicit CA bundle path; searched for when None"
    )
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Request timeout in seconds")

    def with_base_url(self, base_url: str) -> ClientConfig:
        return self.model_copy(update={"base_url": base_url})


class RequestConfig(BaseModel):
    """One request to the API. Used for exactly one execution."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    url: str = Field(min_length=1, description="URL relative to the base URL (or absolute)")
    username: str = Field(min_length=1, description="API username")
    password: str = Field(min_length=1, description="API password")
    proxy: str | None = Field(
        default=None, description="Proxy URL, scheme://[user:pass@]host:port"
    )
    method: str = Field(default="GET", description="HTTP method")
    payload: str | None = Field(default=None, description="Request body")

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, v: object) -> object:
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("method")
    @classmethod
    def validate_method(cls, v: str) -> str:
        if v not in HTTP_METHODS:
            raise ValueError(
                f"unsupported HTTP method '{v}', expected one of {', '.join(sorted(HTTP_METHODS))}"
            )
        return v

    @field_validator("proxy")
    @classmethod
    def validate_proxy(cls, v: str | None) -> str | None:
        if not v:
            return None
        try:
            url = httpx.URL(v)
        except httpx.InvalidURL as e:
            raise ValueError(f"invalid proxy URL '{v}': {e}") from e
        if url.scheme not in PROXY_SCHEMES:
            raise ValueError(
                f"unsupported proxy URL '{v}', expected "
                f"{'|'.join(sorted(PROXY_SCHEMES))}://[user:pass@]host:port"
            )
        if not url.host:
            raise ValueError(f"proxy URL '{v}' has no host")
        return v


class RuntimeConfig(BaseModel):
    """Top-level YAML configuration file structure."""

    model_config = ConfigDict(extra="forbid")

    base_url: str = Field(default=DEFAULT_BASE_URL, description="API base URL")
    ca_file: str | None = Field(default=None, description="CA bundle path")
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Request timeout in seconds")
    proxy: str | None = Field(default=None, description="Proxy URL")
    username: str | None = Field(default=None, description="Default username")
    password: str | None = Field(default=None, description="Default password")

    def client_config(self) -> ClientConfig:
        return ClientConfig(base_url=self.base_url, ca_file=self.ca_file, timeout=self.timeout)


# =============================================================================
# Outcome Models
# =============================================================================


class Success(BaseModel):
    """2xx response (200, 201 or 202). body is the response text unmodified."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["success"] = "success"
    body: str = Field(description="Response body")

    def unwrap(self) -> str:
        return self.body


class Redirect(BaseModel):
    """3xx response (301, 302 or 303). Never followed automatically."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["redirect"] = "redirect"
    location: str = Field(description="Absolute URL the server redirected to")

    @property
    def message(self) -> str:
        return f"You've been redirected to {self.location}"

    def error(self) -> OutcomeError:
        return RedirectError(self.location)

    def unwrap(self) -> str:
        raise self.error()


class Unauthorized(BaseModel):
    """401 response."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["unauthorized"] = "unauthorized"

    def error(self) -> OutcomeError:
        return UnauthorizedError()

    def unwrap(self) -> str:
        raise self.error()


class ResourceNotFound(BaseModel):
    """404 response."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["not_found"] = "not_found"

    def error(self) -> OutcomeError:
        return ResourceNotFoundError()

    def unwrap(self) -> str:
        raise self.error()


class RequestFailed(BaseModel):
    """Any status not classified above. Carries the full response.

    Header keys are lowercase.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["failed"] = "failed"
    status_code: int = Field(description="HTTP status code")
    headers: dict[str, str] = Field(default_factory=dict, description="Response headers")
    body: str = Field(default="", description="Response body")

    @property
    def message(self) -> str:
        """The API's <error><message> text, or the raw body if there is none."""
        return extract_error_message(self.body)

    def error(self) -> OutcomeError:
        return RequestFailedError(self)

    def unwrap(self) -> str:
        raise self.error()


Outcome = Annotated[
    Union[Success, Redirect, Unauthorized, ResourceNotFound, RequestFailed],
    Field(discriminator="kind"),
]

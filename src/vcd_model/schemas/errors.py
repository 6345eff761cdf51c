# Copyright (c) 2025  Cisco Systems, Inc.
# All rights reserved.

# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions
# are met:
# 1. Redistributions of source code must retain the above copyright
#    notice, this list of conditions and the following disclaimer.
# 2. Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.

# THIS SOFTWARE IS PROVIDED BY THE AUTHOR AND CONTRIBUTORS ``AS IS'' AND
# ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED.  IN NO EVENT SHALL THE AUTHOR OR CONTRIBUTORS BE LIABLE
# FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
# DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS
# OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION)
# HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT
# LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY
# OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF
# SUCH DAMAGE.

"""
Error normalization for the four failure formats the platform produces.

- OpenAPI JSON errors (`/cloudapi`)
- legacy XML API `<Error>` documents
- NSX `<error>` documents proxied by the legacy API
- SOAP faults returned by ADFS during SAML authentication

Each format keeps its own model, and all of them provide the same
`short_description()` / `detailed_description()` pair. `normalize` picks the
model for a protocol tag and never fails: a body that cannot be parsed still
yields an error whose message is the raw text or the HTTP status line.
"""

from __future__ import annotations

import logging
from enum import StrEnum
from typing import ClassVar, Protocol, runtime_checkable

from lxml import etree
from pydantic import Field

from vcd_model.schemas.common import NullableText, VcdModel

logger = logging.getLogger(__name__)

MAX_FALLBACK_LEN = 512
SAML_DEFAULT_REASON = "authentication request failed"


class ErrorProtocol(StrEnum):
    """Wire format of a failure body."""

    OPENAPI = "openapi"
    LEGACY_XML = "xml"
    NSX = "nsx"
    SOAP = "soap"


@runtime_checkable
class DescribedError(Protocol):
    """Contract shared by every normalized error."""

    @property
    def message(self) -> str: ...

    @property
    def code(self) -> str | int | None: ...

    @property
    def detail(self) -> str | None: ...

    def short_description(self) -> str: ...

    def detailed_description(self) -> str: ...


class OpenApiError(VcdModel):
    """Error body of the OpenAPI (`/cloudapi`) endpoints."""

    message_field: ClassVar[str] = "message"

    minor_error_code: NullableText = Field(default="", description="Minor error code, e.g. `BAD_REQUEST`.")
    message: NullableText = Field(default="", description="Human readable error message.")
    stack_trace: str | None = Field(default=None, description="Server side stack trace.")

    @property
    def code(self) -> str | None:
        return self.minor_error_code or None

    @property
    def detail(self) -> str | None:
        return self.stack_trace or None

    def short_description(self) -> str:
        if self.minor_error_code:
            return f"{self.minor_error_code} - {self.message}"
        return self.message

    def detailed_description(self) -> str:
        if self.stack_trace:
            return f"{self.short_description()}. Stack: {self.stack_trace}"
        return self.short_description()

    @classmethod
    def fallback(cls, text: str) -> OpenApiError:
        return cls(message=text)


class VcdError(VcdModel):
    """
    The standard error document of the legacy XML API.

    A `majorErrorCode` of 0 is a real condition code, so absence is kept as
    None rather than 0.
    """

    message_field: ClassVar[str] = "message"

    message: NullableText = Field(default="", description="Human readable error message.")
    major_error_code: int | None = Field(default=None, description="HTTP-like major error code.")
    minor_error_code: str | None = Field(default=None, description="Symbolic minor error code.")
    vendor_specific_error_code: str | None = Field(default=None)
    stack_trace: str | None = Field(default=None)

    @property
    def code(self) -> int | None:
        return self.major_error_code

    @property
    def detail(self) -> str | None:
        return self.stack_trace or None

    def short_description(self) -> str:
        if self.major_error_code is None:
            return f"API Error: {self.message}"
        return f"API Error: {self.major_error_code}: {self.message}"

    def detailed_description(self) -> str:
        parts = [self.short_description()]
        if self.minor_error_code:
            parts.append(f"minor error code: {self.minor_error_code}")
        if self.vendor_specific_error_code:
            parts.append(f"vendor error code: {self.vendor_specific_error_code}")
        if self.stack_trace:
            parts.append(f"Stack: {self.stack_trace}")
        return ". ".join(parts)

    @classmethod
    def fallback(cls, text: str) -> VcdError:
        return cls(message=text)


class NsxError(VcdModel):
    """Error document of the NSX API, proxied by the legacy API."""

    message_field: ClassVar[str] = "details"

    error_code: NullableText = Field(default="", description="NSX error code.")
    details: NullableText = Field(default="", description="Free text description of the failure.")
    module_name: NullableText = Field(default="", description="NSX module that reported the failure.")

    @property
    def message(self) -> str:
        return self.details

    @property
    def code(self) -> str | None:
        return self.error_code or None

    @property
    def detail(self) -> str | None:
        return self.module_name or None

    def short_description(self) -> str:
        text = f"{self.module_name} {self.details}".strip()
        if self.error_code:
            return f"{text} (API error: {self.error_code})"
        return text

    def detailed_description(self) -> str:
        if self.module_name:
            return f"{self.short_description()}. Module: {self.module_name}"
        return self.short_description()

    @classmethod
    def fallback(cls, text: str) -> NsxError:
        return cls(details=text)


class AdfsAuthError(VcdModel):
    """SOAP fault returned by ADFS when a WS-Trust token request fails."""

    message_field: ClassVar[str] = "reason"

    fault_code: str | None = Field(default=None, description="Value of `Fault/Code/Value`.")
    fault_subcode: str | None = Field(default=None, description="Value of `Fault/Code/Subcode/Value`.")
    reason: NullableText = Field(default="", description="Text of `Fault/Reason/Text`.")

    @property
    def message(self) -> str:
        return self.reason or SAML_DEFAULT_REASON

    @property
    def code(self) -> str | None:
        return self.fault_subcode or self.fault_code

    @property
    def detail(self) -> str | None:
        codes = [c for c in (self.fault_code, self.fault_subcode) if c]
        return " / ".join(codes) or None

    def short_description(self) -> str:
        return f"SAML request got error: {self.message}"

    def detailed_description(self) -> str:
        if self.detail:
            return f"{self.short_description()} (fault: {self.detail})"
        return self.short_description()

    @classmethod
    def fallback(cls, text: str) -> AdfsAuthError:
        return cls(reason=text)


NormalizedError = OpenApiError | VcdError | NsxError | AdfsAuthError


def _body_text(raw_body: bytes | str | None) -> str:
    if raw_body is None:
        return ""
    if isinstance(raw_body, (bytes, bytearray)):
        raw_body = bytes(raw_body).decode("utf-8", errors="replace")
    text = raw_body.strip()
    if len(text) > MAX_FALLBACK_LEN:
        text = text[:MAX_FALLBACK_LEN] + "..."
    return text


def _parse_xml(raw_body: bytes | str) -> etree._Element:
    if isinstance(raw_body, str):
        raw_body = raw_body.encode("utf-8")
    parser = etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=True)
    return etree.fromstring(raw_body, parser)


def _local_name(element: etree._Element) -> str:
    return etree.QName(element).localname


def _find(element: etree._Element, *path: str) -> etree._Element | None:
    """Follow child elements by local name, ignoring namespaces."""
    for name in path:
        found = element.xpath("./*[local-name()=$name]", name=name)
        if not found:
            return None
        element = found[0]
    return element


def _text(element: etree._Element | None) -> str:
    if element is None or element.text is None:
        return ""
    return element.text.strip()


def parse_openapi_error(raw_body: bytes | str) -> OpenApiError:
    return OpenApiError.model_validate_json(raw_body)


def parse_vcd_error(raw_body: bytes | str) -> VcdError:
    text = raw_body.decode("utf-8") if isinstance(raw_body, (bytes, bytearray)) else raw_body
    if text.lstrip().startswith("{"):
        # The legacy API answers in JSON when asked for `application/*+json`
        return VcdError.model_validate_json(text)
    root = _parse_xml(raw_body)
    if _local_name(root) != "Error":
        raise ValueError(f"expected an Error document, got <{_local_name(root)}>")
    return VcdError.model_validate(dict(root.attrib))


def parse_nsx_error(raw_body: bytes | str) -> NsxError:
    root = _parse_xml(raw_body)
    if _local_name(root) != "error":
        raise ValueError(f"expected an error document, got <{_local_name(root)}>")
    return NsxError(
        error_code=_text(_find(root, "errorCode")),
        details=_text(_find(root, "details")),
        module_name=_text(_find(root, "moduleName")),
    )


def parse_adfs_error(raw_body: bytes | str) -> AdfsAuthError:
    root = _parse_xml(raw_body)
    if _local_name(root) != "Envelope":
        raise ValueError(f"expected a SOAP Envelope, got <{_local_name(root)}>")
    fault = _find(root, "Body", "Fault")
    if fault is None:
        raise ValueError("SOAP Envelope carries no Fault")
    # SOAP 1.2 nests code and reason; SOAP 1.1 uses faultcode and faultstring.
    code = _text(_find(fault, "Code", "Value")) or _text(_find(fault, "faultcode"))
    reason = _text(_find(fault, "Reason", "Text")) or _text(_find(fault, "faultstring"))
    return AdfsAuthError(
        fault_code=code or None,
        fault_subcode=_text(_find(fault, "Code", "Subcode", "Value")) or None,
        reason=reason,
    )


_PARSERS = {
    ErrorProtocol.OPENAPI: (parse_openapi_error, OpenApiError),
    ErrorProtocol.LEGACY_XML: (parse_vcd_error, VcdError),
    ErrorProtocol.NSX: (parse_nsx_error, NsxError),
    ErrorProtocol.SOAP: (parse_adfs_error, AdfsAuthError),
}


def _fallback_message(text: str, protocol: ErrorProtocol, status_code: int | None, reason: str | None) -> str:
    if text:
        return text
    if status_code is not None:
        return f"HTTP {status_code} {reason or ''}".strip()
    return f"unparsable {protocol} error response"


def normalize(
    raw_body: bytes | str | None,
    protocol_tag: ErrorProtocol | str,
    status_code: int | None = None,
    reason: str | None = None,
) -> NormalizedError:
    """
    Turn the body of a failed call into a normalized error value.

    Args:
        raw_body: Response body as received
        protocol_tag: Which of the four error formats the body follows
        status_code: HTTP status code, used when the body is empty
        reason: HTTP reason phrase, used when the body is empty

    Returns:
        The error model matching `protocol_tag`. Its message is never empty.

    Raises:
        ValueError: `protocol_tag` is not a known protocol
    """
    protocol = ErrorProtocol(protocol_tag)
    parse, variant = _PARSERS[protocol]
    error = None
    if raw_body:
        try:
            error = parse(raw_body)
        except (ValueError, TypeError, RecursionError, etree.LxmlError) as e:
            logger.debug(f"Could not parse {protocol} error body, using raw text: {e}")
    if error is None:
        error = variant.fallback(_fallback_message(_body_text(raw_body), protocol, status_code, reason))
    elif not error.message.strip():
        # Keep the parsed codes, only the message is filled in
        text = _fallback_message(_body_text(raw_body), protocol, status_code, reason)
        error = error.model_copy(update={error.message_field: text})
    return error

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
Paginated collection decoding for OpenAPI "Get All" endpoints.

Decoding is split in two steps. `decode_envelope` reads the pagination
scalars and keeps `values` as an undecoded payload; `decode_elements` turns
that payload into a list of the element type the caller asked for. The same
envelope shape is shared by edge gateways, VDCs, catalogs, tasks and every
other collection, so one decoder serves them all.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterator, Mapping, Sequence
from functools import lru_cache
from typing import Any, TypeVar

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, model_validator

from vcd_model.exceptions import ElementDecodeError, MalformedEnvelope
from vcd_model.schemas.common import NonNegativeCount, OpenApiReference, VcdModel

logger = logging.getLogger(__name__)

T = TypeVar("T")

RawBody = bytes | bytearray | str | Mapping[str, Any]


class OpenApiPages(VcdModel, frozen=True):
    """One page of a list response. `values` stays undecoded."""

    result_total: NonNegativeCount = Field(default=0, description="Total results available across all pages.")
    page_count: NonNegativeCount = Field(default=0, description="Total result pages available.")
    page: NonNegativeCount = Field(default=0, description="Current page of the result, starting at 1.")
    page_size: NonNegativeCount = Field(default=0, description="Maximum number of values per page.")
    associations: Any = Field(default=None, description="Endpoint specific side-channel data, not interpreted.")
    values: Any = Field(
        default=None,
        description="Payload of the page. Its element type is only known to the caller.",
    )

    @model_validator(mode="after")
    def check_page_range(self) -> OpenApiPages:
        if self.page_count > 0 and not 1 <= self.page <= self.page_count:
            raise ValueError(f"page {self.page} is outside of [1, {self.page_count}]")
        return self


class OpenApiItems(OpenApiPages, frozen=True):
    """
    Collection of name and ID pairs.

    Shares the pagination fields of `OpenApiPages`, but `values` is always a
    concrete list of references. It is also the body for POST and PUT calls
    that submit several references at once.
    """

    values: list[OpenApiReference] = Field(default_factory=list)

    def to_wire(self, **kwargs) -> dict:
        # `values` is mandatory on the wire, even when empty.
        body = super().to_wire(**kwargs)
        body.setdefault("values", [])
        return body


@lru_cache(maxsize=None)
def _list_adapter(element_type: Any) -> TypeAdapter:
    return TypeAdapter(list[element_type])


def decode_envelope(raw_body: RawBody | None, envelope_type: type[OpenApiPages] = OpenApiPages) -> OpenApiPages:
    """
    Decode the pagination scalars of a list response.

    `values` is not looked at beyond being kept. Raises `MalformedEnvelope`
    when the body is not a JSON object or a scalar field cannot be parsed;
    no partial envelope is returned.
    """
    if raw_body is None or (not isinstance(raw_body, Mapping) and not raw_body):
        raise MalformedEnvelope("empty response body")
    try:
        if isinstance(raw_body, Mapping):
            return envelope_type.model_validate(raw_body)
        return envelope_type.model_validate_json(raw_body)
    except ValidationError as e:
        errors = e.errors(include_url=False)
        reason = "; ".join(f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}" for err in errors)
        logger.debug(f"Failed to decode collection envelope: {reason}")
        raise MalformedEnvelope(reason, raw_body, errors) from e


def decode_elements(envelope: OpenApiPages, element_type: type[T]) -> list[T]:
    """
    Decode the `values` payload of an envelope into `element_type` items.

    Raises `ElementDecodeError` when the payload is not an array, holds more
    than `pageSize` items, or any item does not fit `element_type`.
    """
    page = envelope.page or None
    values = envelope.values if envelope.values is not None else []
    if not isinstance(values, list):
        raise ElementDecodeError(element_type, f"expected an array, got {type(values).__name__}", page=page)
    if envelope.page_size and len(values) > envelope.page_size:
        raise ElementDecodeError(
            element_type,
            f"{len(values)} values exceed the page size of {envelope.page_size}",
            page=page,
        )
    try:
        return _list_adapter(element_type).validate_python(values)
    except ValidationError as e:
        raise ElementDecodeError(
            element_type,
            f"{e.error_count()} validation error(s)",
            page=page,
            errors=e.errors(include_url=False),
        ) from e


def encode_elements(elements: Sequence[BaseModel]) -> list[dict]:
    """Encode typed elements back to their wire representation."""
    return [element.model_dump(mode="json", by_alias=True, exclude_none=True) for element in elements]


def expected_page_count(envelope: OpenApiPages) -> int:
    """
    Number of pages the full result set spans.

    Some endpoints only report `resultTotal` and `pageSize`, in which case the
    count is derived from them.
    """
    if envelope.page_count:
        return envelope.page_count
    if envelope.page_size:
        return math.ceil(envelope.result_total / envelope.page_size)
    return 1 if envelope.page else 0


def has_next_page(envelope: OpenApiPages, decoded_count: int, *, stop_on_short_page: bool = False) -> bool:
    """
    Tell whether another page must be requested after `envelope`.

    By default the walk ends when `page` reaches the page count. Endpoints
    that document a short page as their end signal set `stop_on_short_page`.
    """
    if not envelope.page:
        # Unpaginated response
        return False
    if stop_on_short_page and envelope.page_size:
        if decoded_count < envelope.page_size:
            return False
        return not envelope.page_count or envelope.page < envelope.page_count
    return envelope.page < expected_page_count(envelope)


def raw_value_count(envelope: OpenApiPages) -> int:
    """Number of values a page carries, before any of them is decoded."""
    return len(envelope.values) if isinstance(envelope.values, list) else 0


def walk_pages(
    fetch_page: Callable[[int], RawBody],
    element_type: type[T],
    *,
    stop_on_short_page: bool = False,
    on_element_error: Callable[[ElementDecodeError], None] | None = None,
    envelope_type: type[OpenApiPages] = OpenApiPages,
) -> Iterator[tuple[OpenApiPages, list[T]]]:
    """
    Walk a paginated result set, starting at page 1.

    `fetch_page` receives the page number and returns the raw body of that
    page. Each page is decoded on its own and yielded with its elements.

    A page whose values do not decode raises `ElementDecodeError`, which ends
    the walk. When `on_element_error` is given it receives the error instead,
    the bad page is skipped and the walk goes on with the next one. The
    callback may re-raise to stop. Envelope errors always end the walk.
    """
    page = 1
    while True:
        envelope = decode_envelope(fetch_page(page), envelope_type)
        if envelope.page and envelope.page != page:
            raise MalformedEnvelope(f"requested page {page} but got page {envelope.page}")
        try:
            elements = decode_elements(envelope, element_type)
        except ElementDecodeError as e:
            if on_element_error is None:
                raise
            on_element_error(e)
            logger.warning(f"Skipped page {page}: {e}")
        else:
            logger.debug(f"Decoded {len(elements)} {getattr(element_type, '__name__', element_type)} values from page {page}")
            yield envelope, elements
        if not has_next_page(envelope, raw_value_count(envelope), stop_on_short_page=stop_on_short_page):
            return
        page += 1

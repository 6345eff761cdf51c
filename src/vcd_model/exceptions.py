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
Exceptions raised by the decode layer and the HTTP boundary adapter.

Server failures are described by normalized error values (see
`vcd_model.schemas.errors`); `ApiError` is the exception that carries one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from vcd_model.schemas.errors import NormalizedError

BODY_EXCERPT_LEN = 256


def _excerpt(raw: Any) -> str:
    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw).decode("utf-8", errors="replace")
    text = str(raw)
    if len(text) > BODY_EXCERPT_LEN:
        return text[:BODY_EXCERPT_LEN] + "..."
    return text


class VcdModelError(Exception):
    """Base class for all errors raised by this package."""


class MalformedEnvelope(VcdModelError):
    """The pagination scalars of a collection envelope could not be parsed."""

    def __init__(self, reason: str, raw_body: Any = None, errors: list[dict] | None = None) -> None:
        self.reason = reason
        self.body_excerpt = _excerpt(raw_body) if raw_body is not None else None
        self.errors = errors or []
        super().__init__(f"malformed collection envelope: {reason}")


class ElementDecodeError(VcdModelError):
    """The envelope payload does not conform to the requested element type."""

    def __init__(
        self,
        element_type: type,
        reason: str,
        page: int | None = None,
        errors: list[dict] | None = None,
    ) -> None:
        self.element_type = element_type
        self.reason = reason
        self.page = page
        self.errors = errors or []
        where = f" on page {page}" if page else ""
        name = getattr(element_type, "__name__", repr(element_type))
        super().__init__(f"error decoding values into {name}{where}: {reason}")


class ApiError(VcdModelError):
    """A call failed on the server side. Carries the normalized error."""

    def __init__(self, status_code: int | None, error: NormalizedError) -> None:
        self.status_code = status_code
        self.error = error
        super().__init__(error.short_description())

    @property
    def detailed(self) -> str:
        return self.error.detailed_description()


class VersionConflict(ApiError):
    """The version stamp submitted with an update is stale. Re-read and retry."""


class EntityNotFound(ApiError):
    """The entity does not exist or the caller is not allowed to see it."""

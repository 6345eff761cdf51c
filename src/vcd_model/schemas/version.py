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
Version stamps for optimistic concurrency.

Resources that can be edited concurrently (NAT rules, firewall rules, BGP
configuration, IPsec tunnels, distributed firewall policies, ...) carry a
`version` object. The calling convention is the same for all of them:

1. GET the resource; it comes back with its current version.
2. Change only the intended fields.
3. PUT the whole representation back with the version read in step 1.

The server bumps the version on every successful change and rejects an
update whose version is stale. Such a rejection is reported as
`VersionConflict` and the only recovery is to start again from step 1.
Nothing here retries on its own.

On create the version must be absent from the body; it is assigned by the
server.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import Field, ValidationError

from vcd_model.exceptions import ElementDecodeError
from vcd_model.schemas.common import VcdModel
from vcd_model.schemas.errors import NormalizedError, OpenApiError, VcdError

logger = logging.getLogger(__name__)

CONFLICT_STATUS_CODES = frozenset({409, 412})
CONFLICT_MINOR_CODES = frozenset({"CONFLICT"})

V = TypeVar("V", bound="Versioned")


class VersionField(VcdModel):
    """Current version of an entity, as returned by the server."""

    version: int = Field(..., ge=0)


class Versioned(VcdModel):
    """Mixin for resources guarded by a version stamp."""

    version: VersionField | None = Field(
        default=None,
        description="""
            Current version of the entity. Update operations must include the
            version obtained from a GET; it must be left out on create.
        """,
    )

    @property
    def version_number(self) -> int | None:
        return self.version.version if self.version is not None else None


def read_versioned(raw_body: bytes | str | Mapping[str, Any], resource_type: type[V]) -> tuple[V, int | None]:
    """Decode a single resource and return it along with its version stamp."""
    try:
        if isinstance(raw_body, Mapping):
            resource = resource_type.model_validate(raw_body)
        else:
            resource = resource_type.model_validate_json(raw_body)
    except ValidationError as e:
        raise ElementDecodeError(
            resource_type,
            f"{e.error_count()} validation error(s)",
            errors=e.errors(include_url=False),
        ) from e
    return resource, resource.version_number


def create_payload(resource: Versioned) -> dict:
    """Wire body for a create call. The version is always left out."""
    if resource.version is not None:
        logger.debug(f"Dropping version {resource.version_number} from {type(resource).__name__} create payload")
    return resource.to_wire(exclude={"version"})


def update_payload(resource: Versioned, version: int | None) -> dict:
    """
    Wire body for an update call.

    `version` is the stamp read together with the resource and is sent
    verbatim. A missing version is not rejected here; resources that require
    one are rejected by the server.
    """
    body = resource.to_wire(exclude={"version"})
    if version is not None:
        body["version"] = VersionField(version=version).to_wire()
    return body


def is_version_conflict(status_code: int | None, error: NormalizedError | None = None) -> bool:
    """Tell whether a failed update was refused because of a stale version stamp."""
    if status_code in CONFLICT_STATUS_CODES:
        return True
    if isinstance(error, (OpenApiError, VcdError)):
        return error.minor_error_code in CONFLICT_MINOR_CODES
    return False

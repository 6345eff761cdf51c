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

import re
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

URN_REG = r"^urn:vcloud:[a-zA-Z]+:[\da-zA-Z-]{1,64}(?![\n\r])$"

JSON_MIME = "application/json"


def _none_as_zero(value: object) -> object:
    # Some endpoints send `null` for pagination scalars they do not track.
    return 0 if value is None else value


NonNegativeCount = Annotated[int, BeforeValidator(_none_as_zero), Field(ge=0)]


def _none_as_empty(value: object) -> object:
    return "" if value is None else value


# Text field where the server sends `null` and "" interchangeably
NullableText = Annotated[str, BeforeValidator(_none_as_empty)]

VcdUrn = Annotated[
    str,
    Field(
        description="A Cloud Director URN identifier.",
        examples=["urn:vcloud:gateway:90f84e38-a71c-4d57-8d90-00fa8a197385"],
        pattern=re.compile(URN_REG),
    ),
]

EntityName = Annotated[
    str,
    Field(
        min_length=1,
        max_length=255,
        description="Name of the entity.",
        examples=["edge-gw-01"],
    ),
]

GenericDescription = Annotated[str, Field(max_length=4096)]


class VcdModel(BaseModel):
    """
    Base class for every OpenAPI wire model.

    Python attributes are snake_case; the camelCase wire names used by the
    platform are generated as aliases so they round-trip verbatim.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self, **kwargs) -> dict:
        """Dump the model with wire names, leaving out unset optional fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True, **kwargs)


class OpenApiReference(VcdModel):
    """A name and identifier pair pointing at another entity."""

    name: str | None = Field(default=None, description="Name of the referenced entity.")
    id: str | None = Field(default=None, description="ID of the referenced entity.")

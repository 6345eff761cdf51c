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

# Public surface of the protocol adaptation layer
from vcd_model.schemas.common import OpenApiReference, VcdModel
from vcd_model.schemas.errors import (
    AdfsAuthError,
    DescribedError,
    ErrorProtocol,
    NormalizedError,
    NsxError,
    OpenApiError,
    VcdError,
    normalize,
)
from vcd_model.schemas.pages import (
    OpenApiItems,
    OpenApiPages,
    decode_elements,
    decode_envelope,
    encode_elements,
    expected_page_count,
    has_next_page,
    raw_value_count,
    walk_pages,
)
from vcd_model.schemas.version import (
    VersionField,
    Versioned,
    create_payload,
    is_version_conflict,
    read_versioned,
    update_payload,
)

__all__ = [
    "AdfsAuthError",
    "DescribedError",
    "ErrorProtocol",
    "NormalizedError",
    "NsxError",
    "OpenApiError",
    "OpenApiItems",
    "OpenApiPages",
    "OpenApiReference",
    "VcdError",
    "VcdModel",
    "VersionField",
    "Versioned",
    "create_payload",
    "decode_elements",
    "decode_envelope",
    "encode_elements",
    "expected_page_count",
    "has_next_page",
    "is_version_conflict",
    "normalize",
    "raw_value_count",
    "read_versioned",
    "update_payload",
    "walk_pages",
]

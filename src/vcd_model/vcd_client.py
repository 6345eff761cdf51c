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

import logging
import os
from collections.abc import Callable
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from vcd_model.exceptions import ApiError, ElementDecodeError, EntityNotFound, MalformedEnvelope, VersionConflict
from vcd_model.schemas.common import JSON_MIME, VcdModel
from vcd_model.schemas.errors import ErrorProtocol, normalize
from vcd_model.schemas.pages import decode_elements, decode_envelope, expected_page_count
from vcd_model.schemas.version import Versioned, create_payload, is_version_conflict, read_versioned, update_payload
from vcd_model.settings import settings

T = TypeVar("T", bound=BaseModel)
V = TypeVar("V", bound=Versioned)

# Set up logging for this module only
logger = logging.getLogger("vcd-model.vcd_client")
loglevel = logging.DEBUG if os.getenv("DEBUG", "false").lower() == "true" else logging.INFO
logger.setLevel(loglevel)
# Configure handler with format for this module only
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def _decode_item(content: bytes, resource_type: type[T]) -> T:
    try:
        return resource_type.model_validate_json(content)
    except ValidationError as e:
        raise ElementDecodeError(
            resource_type,
            f"{e.error_count()} validation error(s)",
            errors=e.errors(include_url=False),
        ) from e


def find_rel_link(rel: str, resp: httpx.Response) -> str | None:
    """
    Look up a link by relation name in the `Link` header of a response.

    A single link can carry several relations (e.g. `rel="lastPage nextPage"`
    on the next to last page).
    """
    for key, link in resp.links.items():
        if rel in key.split(" ") or link.get("rel") == rel:
            return str(resp.url.join(link["url"]))
    return None


class VcdClient(object):
    """
    Async client for the Cloud Director OpenAPI.

    Decodes list responses page by page into typed elements, single responses
    into typed resources, and turns every failure into an `ApiError` that
    carries the normalized error. Session establishment is left to the caller,
    who provides the bearer token.
    """

    def __init__(
        self,
        host: str,
        token: str | None = None,
        api_version: str | None = None,
        verify_ssl: bool | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = host.rstrip("/")
        self.api_base = f"{self.base_url}/cloudapi"
        self.legacy_api_base = f"{self.base_url}/api"
        self.api_version = api_version or settings.vcd_api_version
        self.verify_ssl = settings.vcd_verify_ssl if verify_ssl is None else verify_ssl

        self.client = httpx.AsyncClient(
            verify=self.verify_ssl,
            timeout=settings.vcd_timeout,
            transport=transport,
            headers={"Accept": f"{JSON_MIME};version={self.api_version}"},
        )
        self._token = None
        self.token = token

    @property
    def token(self) -> str | None:
        return self._token

    @token.setter
    def token(self, value: str | None) -> None:
        self._token = value
        if not value:
            self.client.headers.pop("Authorization", None)
            self.client.headers.pop("X-Vmware-Vcloud-Token-Type", None)
        else:
            self.client.headers.update({"Authorization": f"Bearer {self._token}", "X-Vmware-Vcloud-Token-Type": "Bearer"})

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith(("http://", "https://")):
            return endpoint
        return f"{self.api_base}{endpoint}"

    def check_response(
        self,
        resp: httpx.Response,
        protocol: ErrorProtocol = ErrorProtocol.OPENAPI,
        updating: bool = False,
    ) -> httpx.Response:
        """
        Pass successful responses through, raise `ApiError` for the others.

        The error body is normalized according to `protocol`. When `updating`
        is set a stale version stamp is raised as `VersionConflict`.
        """
        if resp.is_success:
            return resp
        error = normalize(resp.content, protocol, resp.status_code, resp.reason_phrase)
        description = error.detailed_description() if settings.vcd_include_stack_trace else error.short_description()
        logger.error(f"{resp.request.method} {resp.request.url} failed with HTTP {resp.status_code}: {description}")
        if updating and is_version_conflict(resp.status_code, error):
            raise VersionConflict(resp.status_code, error)
        raise ApiError(resp.status_code, error)

    async def request(
        self,
        method: str,
        endpoint: str,
        protocol: ErrorProtocol = ErrorProtocol.OPENAPI,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Perform a request and check its status.

        `endpoint` is relative to `/cloudapi` unless it is an absolute URL, which
        is how legacy XML and NSX proxy endpoints are reached.
        """
        url = self._url(endpoint)
        try:
            resp = await self.client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Error making {method} request to {url}: {e}", exc_info=True)
            raise e
        return self.check_response(resp, protocol, updating=(method == "PUT"))

    async def get_all_items(
        self,
        endpoint: str,
        element_type: type[T],
        params: dict | None = None,
        on_element_error: Callable[[ElementDecodeError], None] | None = None,
    ) -> list[T]:
        """
        Retrieve every page of a collection and decode its values into `element_type`.

        Pages are followed through the `nextPage` link. Some endpoints do not
        send that link, in which case the next page is requested by number
        as long as the page count says there are more.

        A page that does not decode raises `ElementDecodeError` unless
        `on_element_error` is given, in which case the callback receives the
        error and the page is skipped.
        """
        base_params = dict(params or {})
        base_params.setdefault("pageSize", str(settings.vcd_page_size))
        url = self._url(endpoint)
        query: dict | None = base_params
        items: list[T] = []
        seen_pages: set[int] = set()

        logger.debug(f"Getting all items from {url} for parsing into {element_type.__name__}")
        while True:
            resp = await self.request("GET", url, params=query)
            envelope = decode_envelope(resp.content)
            if envelope.page in seen_pages:
                raise MalformedEnvelope(f"page {envelope.page} was returned twice", resp.content)
            seen_pages.add(envelope.page)
            try:
                items.extend(decode_elements(envelope, element_type))
            except ElementDecodeError as e:
                if on_element_error is None:
                    raise
                on_element_error(e)
                logger.warning(f"Skipped page {envelope.page} of {endpoint}: {e}")

            next_url = find_rel_link("nextPage", resp)
            if next_url:
                url, query = next_url, None
            elif envelope.page and envelope.page < expected_page_count(envelope):
                url, query = self._url(endpoint), {**base_params, "page": str(envelope.page + 1)}
            else:
                break

        logger.debug(f"Got {len(items)} {element_type.__name__} items from {endpoint}")
        return items

    async def _get_single(self, endpoint: str, params: dict | None = None) -> httpx.Response:
        try:
            return await self.request("GET", endpoint, params=params)
        except ApiError as e:
            if e.status_code == 403:
                raise EntityNotFound(e.status_code, e.error) from e
            raise

    async def get_item(self, endpoint: str, resource_type: type[T], params: dict | None = None) -> T:
        """
        Retrieve one resource.

        The server answers HTTP 403 both when the caller is not authorized and
        when the entity does not exist; that is raised as `EntityNotFound`.
        """
        resp = await self._get_single(endpoint, params)
        return _decode_item(resp.content, resource_type)

    async def get_versioned_item(self, endpoint: str, resource_type: type[V]) -> tuple[V, int | None]:
        """Retrieve one resource along with its version stamp. HTTP 403 is raised as `EntityNotFound`."""
        resp = await self._get_single(endpoint)
        return read_versioned(resp.content, resource_type)

    async def post_item(self, endpoint: str, resource: VcdModel, response_type: type[T] | None = None) -> T | None:
        """
        Create a resource.

        Versioned resources are sent without their version. Returns the created
        resource when the server answers with one, None for asynchronous (task
        based) or empty responses.
        """
        body = create_payload(resource) if isinstance(resource, Versioned) else resource.to_wire()
        resp = await self.request("POST", endpoint, json=body)
        if resp.status_code in (202, 204) or not resp.content:
            return None
        return _decode_item(resp.content, response_type or type(resource))

    async def put_item(self, endpoint: str, resource: V, version: int | None) -> V | None:
        """
        Update a versioned resource.

        `version` must be the stamp read with the resource. Raises
        `VersionConflict` when the server holds a newer version. When the
        server does not send back the updated resource it is read again so
        the caller gets the new version.
        """
        body = update_payload(resource, version)
        resp = await self.request("PUT", endpoint, json=body)
        if resp.status_code == 202:
            return None
        if resp.status_code == 204 or not resp.content:
            return await self.get_item(endpoint, type(resource))
        return _decode_item(resp.content, type(resource))

    async def update_versioned_item(self, endpoint: str, resource_type: type[V], mutate: Callable[[V], V]) -> V | None:
        """
        Run one read, mutate, submit cycle on a versioned resource.

        `mutate` receives the current resource and returns the changed copy.
        There is no retry: on `VersionConflict` the caller starts over.
        """
        resource, version = await self.get_versioned_item(endpoint, resource_type)
        logger.debug(f"Updating {resource_type.__name__} at {endpoint} from version {version}")
        return await self.put_item(endpoint, mutate(resource), version)

    async def delete_item(self, endpoint: str) -> None:
        await self.request("DELETE", endpoint)

    async def close(self) -> None:
        await self.client.aclose()

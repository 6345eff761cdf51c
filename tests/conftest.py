# Copyright (c) 2025  Cisco Systems, Inc.
# All rights reserved.

"""Shared test fixtures for vcd-model tests."""

from __future__ import annotations

import json
import math

import httpx
import pytest

EDGE_GATEWAY_ENDPOINT = "/1.0.0/edgeGateways"
NAT_RULE_ENDPOINT = "/1.0.0/edgeGateways/urn:vcloud:gateway:1/nat/rules/rule-1"


def make_gateway(index: int) -> dict:
    return {
        "id": f"urn:vcloud:gateway:{index:08d}-0000-4000-8000-000000000000",
        "name": f"edge-{index}",
        "description": "",
        "orgVdc": {"name": "vdc-1", "id": "urn:vcloud:vdc:1"},
        "edgeGatewayUplinks": [],
    }


class FakeVcdServer:
    """
    Minimal stand-in for the Cloud Director OpenAPI.

    Serves a paginated edge gateway collection and one versioned NAT rule
    that follows the optimistic locking rules of the platform.
    """

    def __init__(
        self,
        total: int = 0,
        page_size: int = 25,
        send_next_link: bool = True,
        send_page_count: bool = True,
        nat_version: int = 5,
        bad_pages: set[int] | None = None,
    ) -> None:
        self.gateways = [make_gateway(i) for i in range(total)]
        self.default_page_size = page_size
        self.send_next_link = send_next_link
        self.send_page_count = send_page_count
        self.bad_pages = bad_pages or set()
        self.nat_rule = {
            "id": "rule-1",
            "name": "dnat-web",
            "type": "DNAT",
            "externalAddresses": "203.0.113.10",
            "internalAddresses": "10.0.0.10",
            "enabled": True,
            "version": {"version": nat_version},
        }
        self.requests: list[httpx.Request] = []
        self.put_bodies: list[dict] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == f"/cloudapi{EDGE_GATEWAY_ENDPOINT}" and request.method == "GET":
            return self._list_gateways(request)
        if path == f"/cloudapi{NAT_RULE_ENDPOINT}":
            if request.method == "GET":
                return httpx.Response(200, json=self.nat_rule)
            if request.method == "PUT":
                return self._update_nat_rule(request)
        return httpx.Response(
            403,
            json={"minorErrorCode": "ACCESS_TO_RESOURCE_IS_FORBIDDEN", "message": "Either you need some or all of the following rights", "stackTrace": "com.vmware..."},
        )

    def _list_gateways(self, request: httpx.Request) -> httpx.Response:
        page_size = int(request.url.params.get("pageSize", self.default_page_size))
        page = int(request.url.params.get("page", 1))
        total = len(self.gateways)
        page_count = math.ceil(total / page_size)
        start = (page - 1) * page_size
        body = {
            "resultTotal": total,
            "page": page,
            "pageSize": page_size,
            "associations": None,
            "values": self.gateways[start : start + page_size],
        }
        if page in self.bad_pages:
            body["values"] = [{"id": "not-a-urn", "name": ""}] + body["values"][1:]
        if self.send_page_count:
            body["pageCount"] = page_count
        headers = {}
        if self.send_next_link and page < page_count:
            next_url = request.url.copy_merge_params({"page": str(page + 1)})
            headers["Link"] = f'<{next_url}>;rel="nextPage";type="application/json";model="EdgeGateways"'
        return httpx.Response(200, json=body, headers=headers)

    def _update_nat_rule(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.put_bodies.append(body)
        current = self.nat_rule["version"]["version"]
        submitted = (body.get("version") or {}).get("version")
        if submitted is None:
            return httpx.Response(
                400,
                json={"minorErrorCode": "BAD_REQUEST", "message": "version is required"},
            )
        if submitted != current:
            return httpx.Response(
                409,
                json={
                    "minorErrorCode": "CONFLICT",
                    "message": f"The object was modified: version {submitted} is not the current version {current}",
                },
            )
        updated = dict(body, version={"version": current + 1})
        self.nat_rule = updated
        return httpx.Response(200, json=updated)


@pytest.fixture
def fake_server() -> FakeVcdServer:
    return FakeVcdServer()


@pytest.fixture
def vcd_client_factory():
    """Build VcdClient instances backed by a FakeVcdServer."""
    from vcd_model.vcd_client import VcdClient

    def factory(server: FakeVcdServer) -> VcdClient:
        return VcdClient("https://vcd.example.com/", token="t0ken", transport=httpx.MockTransport(server))

    return factory


@pytest.fixture
def legacy_forbidden_xml() -> bytes:
    return (
        b'<?xml version="1.0" encoding="UTF-8"?>\n'
        b'<Error xmlns="http://www.vmware.com/vcloud/v1.5" majorErrorCode="403" '
        b'minorErrorCode="ACCESS_TO_RESOURCE_IS_FORBIDDEN" message="Forbidden" '
        b'stackTrace="com.vmware.vcloud.api.presentation.service.AccessForbiddenException"/>'
    )


@pytest.fixture
def nsx_error_xml() -> bytes:
    return (
        b"<error><details>Rule id 196609 not found.</details>"
        b"<errorCode>13004</errorCode><moduleName>vShield Edge</moduleName></error>"
    )


@pytest.fixture
def adfs_fault_xml() -> bytes:
    return (
        b'<s:Envelope xmlns:s="http://www.w3.org/2003/05/soap-envelope" '
        b'xmlns:a="http://www.w3.org/2005/08/addressing">'
        b"<s:Header/><s:Body><s:Fault>"
        b"<s:Code><s:Value>s:Sender</s:Value>"
        b'<s:Subcode><s:Value xmlns:a="http://docs.oasis-open.org/ws-sx/ws-trust/200512">a:FailedAuthentication</s:Value></s:Subcode>'
        b"</s:Code>"
        b'<s:Reason><s:Text xml:lang="en-US">ID3242: The security token could not be authenticated or authorized.</s:Text></s:Reason>'
        b"</s:Fault></s:Body></s:Envelope>"
    )

# Copyright (c) 2025  Cisco Systems, Inc.
# All rights reserved.

"""Unit tests for schemas/version.py - version stamp handling."""

from __future__ import annotations

import pytest

from vcd_model.exceptions import ElementDecodeError
from vcd_model.schemas.errors import NsxError, OpenApiError, VcdError
from vcd_model.schemas.nsxt import (
    DfwPolicies,
    NatRuleType,
    NsxtBgpConfig,
    NsxtIpSecVpnTunnel,
    NsxtNatRule,
)
from vcd_model.schemas.version import (
    VersionField,
    create_payload,
    is_version_conflict,
    read_versioned,
    update_payload,
)

NAT_RULE = {
    "id": "rule-1",
    "name": "dnat-web",
    "type": "DNAT",
    "externalAddresses": "203.0.113.10",
    "internalAddresses": "10.0.0.10",
    "dnatExternalPort": "8443",
    "version": {"version": 5},
}


class TestReadVersioned:
    """Test reading resources along with their version."""

    def test_nat_rule(self):
        """Test that the version comes back with the resource."""
        rule, version = read_versioned(NAT_RULE, NsxtNatRule)
        assert version == 5
        assert rule.version == VersionField(version=5)
        assert rule.type == NatRuleType.DNAT

    def test_bgp_config_from_bytes(self):
        """Test reading a raw body with a non camelCase wire name."""
        rule, version = read_versioned(
            b'{"enabled": true, "ecmp": true, "localASNumber": "65000", "version": {"version": 12}}', NsxtBgpConfig
        )
        assert version == 12
        assert rule.local_as_number == "65000"

    def test_missing_version(self):
        """Test that a resource without version reports None."""
        _, version = read_versioned({"name": "r", "type": "SNAT"}, NsxtNatRule)
        assert version is None

    def test_shape_mismatch(self):
        """Test that an invalid resource raises ElementDecodeError."""
        with pytest.raises(ElementDecodeError):
            read_versioned({"name": "r", "type": "NOT_A_TYPE"}, NsxtNatRule)


class TestPayloads:
    """Test create and update payloads."""

    def test_create_omits_version(self):
        """Test that the version is absent from a create body, even when set."""
        rule = NsxtNatRule(name="snat", type=NatRuleType.SNAT, version=VersionField(version=0))
        body = create_payload(rule)
        assert "version" not in body
        assert body["name"] == "snat"
        assert body["type"] == "SNAT"

    def test_update_round_trips_version(self):
        """Test that the version read is sent back verbatim."""
        rule, version = read_versioned(NAT_RULE, NsxtNatRule)
        body = update_payload(rule.model_copy(update={"enabled": False}), version)
        assert body["version"] == {"version": 5}
        assert body["enabled"] is False
        assert body["dnatExternalPort"] == "8443"
        assert body["externalAddresses"] == "203.0.113.10"

    def test_update_uses_supplied_version(self):
        """Test that the supplied version wins over the one held by the resource."""
        rule, _ = read_versioned(NAT_RULE, NsxtNatRule)
        assert update_payload(rule, 4)["version"] == {"version": 4}

    def test_update_without_version(self):
        """Test that a missing version is left for the server to reject."""
        rule = NsxtNatRule(name="snat", type=NatRuleType.SNAT)
        assert "version" not in update_payload(rule, None)

    def test_nested_versioned_resource(self):
        """Test a version stamp embedded in a nested resource."""
        policies = DfwPolicies.model_validate(
            {"enabled": True, "defaultPolicy": {"id": "p1", "name": "Default", "version": {"version": 3}}}
        )
        assert policies.default_policy.version_number == 3
        body = policies.to_wire()
        assert body["defaultPolicy"]["version"] == {"version": 3}

    def test_ipsec_tunnel_create(self):
        """Test that the create body of a tunnel keeps nested endpoints."""
        tunnel = NsxtIpSecVpnTunnel.model_validate(
            {
                "name": "to-dc2",
                "localEndpoint": {"localAddress": "198.51.100.1", "localNetworks": ["10.0.0.0/24"]},
                "remoteEndpoint": {"remoteAddress": "198.51.100.2", "remoteNetworks": ["10.1.0.0/24"]},
                "preSharedKey": "secret",
                "version": {"version": 1},
            }
        )
        body = create_payload(tunnel)
        assert "version" not in body
        assert body["localEndpoint"]["localNetworks"] == ["10.0.0.0/24"]


class TestVersionConflict:
    """Test stale version detection."""

    @pytest.mark.parametrize("status_code", [409, 412])
    def test_conflict_status(self, status_code):
        """Test that conflict status codes are version conflicts."""
        assert is_version_conflict(status_code, OpenApiError(message="x")) is True

    def test_conflict_minor_code(self):
        """Test the CONFLICT minor error code."""
        assert is_version_conflict(400, OpenApiError(minor_error_code="CONFLICT", message="stale")) is True
        assert is_version_conflict(400, VcdError(minor_error_code="CONFLICT", message="stale")) is True

    def test_other_failures(self):
        """Test that other failures are not version conflicts."""
        assert is_version_conflict(400, OpenApiError(minor_error_code="BAD_REQUEST", message="bad")) is False
        assert is_version_conflict(400, NsxError(details="bad")) is False
        assert is_version_conflict(500) is False

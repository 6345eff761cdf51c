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
Resource schemas for NSX-T backed networking, as exposed by the OpenAPI.

Only a representative set is kept here: the edge gateway, roles, and the
resources guarded by a version stamp.
"""

from enum import StrEnum
from typing import Annotated

from pydantic import Field

from vcd_model.schemas.common import EntityName, GenericDescription, OpenApiReference, VcdModel, VcdUrn
from vcd_model.schemas.version import Versioned

IPAddressList = Annotated[
    list[str],
    Field(
        description="IP addresses, CIDRs or ranges. Format is checked by the server.",
        examples=[["10.0.0.10", "192.168.1.0/24"]],
    ),
]


class NatRuleType(StrEnum):
    DNAT = "DNAT"
    NO_DNAT = "NO_DNAT"
    SNAT = "SNAT"
    NO_SNAT = "NO_SNAT"
    REFLEXIVE = "REFLEXIVE"


class FirewallAction(StrEnum):
    ALLOW = "ALLOW"
    DROP = "DROP"
    REJECT = "REJECT"


class FirewallDirection(StrEnum):
    IN = "IN"
    OUT = "OUT"
    IN_OUT = "IN_OUT"


class IpProtocol(StrEnum):
    IPV4 = "IPV4"
    IPV6 = "IPV6"
    IPV4_IPV6 = "IPV4_IPV6"


class Role(VcdModel):
    """Access role."""

    id: VcdUrn | None = Field(default=None)
    name: EntityName = Field(...)
    description: GenericDescription | None = Field(default=None)
    bundle_key: str | None = Field(default=None, description="Key used for internationalization.")
    read_only: bool = Field(default=False)


class EdgeGatewaySubnet(VcdModel):
    gateway: str = Field(...)
    prefix_length: int = Field(..., ge=0, le=128, description="Prefix length, e.g. 24 for a /24 subnet.")
    enabled: bool = Field(default=True)
    primary_ip: str | None = Field(default=None)
    total_ip_count: int | None = Field(default=None)
    used_ip_count: int | None = Field(default=None)


class EdgeGatewaySubnets(VcdModel):
    values: list[EdgeGatewaySubnet] = Field(default_factory=list)


class EdgeGatewayUplink(VcdModel):
    uplink_id: str | None = Field(default=None, description="ID of the external network.")
    uplink_name: str | None = Field(default=None, description="Name of the external network.")
    subnets: EdgeGatewaySubnets = Field(default_factory=EdgeGatewaySubnets)
    connected: bool = Field(default=False)
    dedicated: bool = Field(default=False)


class OpenApiEdgeGateway(VcdModel):
    """An NSX-T or NSX-V edge gateway."""

    id: VcdUrn | None = Field(default=None)
    status: str | None = Field(default=None)
    name: EntityName = Field(...)
    description: GenericDescription | None = Field(default="")
    org_vdc: OpenApiReference | None = Field(
        default=None,
        description="VDC or VDC Group that this edge gateway belongs to.",
    )
    org_ref: OpenApiReference | None = Field(default=None, description="Organization owning the gateway.")
    edge_gateway_uplinks: list[EdgeGatewayUplink] = Field(default_factory=list)
    distributed_routing_enabled: bool | None = Field(default=None)
    org_vdc_network_count: int | None = Field(default=None, ge=0)


class NsxtNatRule(Versioned):
    """NAT rule on an NSX-T edge gateway."""

    id: str | None = Field(default=None)
    name: EntityName = Field(...)
    description: GenericDescription | None = Field(default="")
    enabled: bool = Field(default=True)
    type: NatRuleType = Field(..., description="Type of NAT rule.")
    external_addresses: str = Field(default="", description="Public address(es) for the rule.")
    internal_addresses: str = Field(default="", description="Private address(es) for the rule.")
    application_port_profile: OpenApiReference | None = Field(default=None)
    dnat_external_port: str | None = Field(default=None)
    snat_destination_addresses: str | None = Field(default=None)
    logging: bool = Field(default=False)
    priority: int | None = Field(default=None, description="Lower value means higher priority.")


class NsxtFirewallRule(Versioned):
    """Edge gateway firewall rule."""

    id: str | None = Field(default=None)
    name: EntityName = Field(...)
    description: GenericDescription | None = Field(default=None)
    action_value: FirewallAction = Field(default=FirewallAction.ALLOW)
    enabled: bool = Field(default=True)
    direction: FirewallDirection = Field(default=FirewallDirection.IN_OUT)
    ip_protocol: IpProtocol = Field(default=IpProtocol.IPV4_IPV6)
    logging: bool = Field(default=False)
    source_firewall_groups: list[OpenApiReference] | None = Field(default=None)
    destination_firewall_groups: list[OpenApiReference] | None = Field(default=None)
    application_port_profiles: list[OpenApiReference] | None = Field(default=None)


class BgpGracefulRestart(VcdModel):
    mode: str = Field(default="HELPER_ONLY", description="`DISABLE`, `HELPER_ONLY` or `GRACEFUL_AND_HELPER`.")
    restart_timer: int = Field(default=180, ge=1)
    stale_route_timer: int = Field(default=600, ge=1)


class NsxtBgpConfig(Versioned):
    """BGP configuration of an NSX-T edge gateway. There is exactly one per gateway."""

    enabled: bool = Field(default=False)
    ecmp: bool = Field(default=False)
    local_as_number: str | None = Field(default=None, alias="localASNumber", description="Autonomous system number.")
    graceful_restart: BgpGracefulRestart | None = Field(default=None)


class IpSecLocalEndpoint(VcdModel):
    local_id: str | None = Field(default=None)
    local_address: str = Field(...)
    local_networks: IPAddressList = Field(default_factory=list)


class IpSecRemoteEndpoint(VcdModel):
    remote_id: str | None = Field(default=None)
    remote_address: str = Field(...)
    remote_networks: IPAddressList = Field(default_factory=list)


class NsxtIpSecVpnTunnel(Versioned):
    """Policy based IPsec VPN tunnel."""

    id: str | None = Field(default=None)
    name: EntityName = Field(...)
    description: GenericDescription | None = Field(default=None)
    enabled: bool = Field(default=True)
    local_endpoint: IpSecLocalEndpoint = Field(...)
    remote_endpoint: IpSecRemoteEndpoint = Field(...)
    pre_shared_key: str | None = Field(default=None)
    authentication_mode: str = Field(default="PSK")
    security_type: str = Field(default="DEFAULT")
    logging: bool = Field(default=False)


class DefaultPolicy(Versioned):
    """Default distributed firewall policy of a VDC Group."""

    id: str | None = Field(default=None, description="Policy ID. Required on update, generated on create.")
    name: str = Field(...)
    description: GenericDescription | None = Field(default=None)
    enabled: bool | None = Field(default=None)


class DfwPolicies(VcdModel):
    """Distributed firewall policies of a VDC Group."""

    enabled: bool = Field(...)
    default_policy: DefaultPolicy | None = Field(default=None)

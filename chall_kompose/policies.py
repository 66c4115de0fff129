"""Namespace and NetworkPolicy synthesis."""

from typing import Dict, List, Optional

import pulumi_kubernetes as k8s
from pulumi import ResourceOptions

from .base import declare


# From https://raw.githubusercontent.com/kubernetes/website/main/content/en/examples/security/podsecurity-baseline.yaml
POD_SECURITY_LABELS = {
    "pod-security.kubernetes.io/enforce": "baseline",
    "pod-security.kubernetes.io/enforce-version": "latest",
    "pod-security.kubernetes.io/warn": "baseline",
    "pod-security.kubernetes.io/warn-version": "latest",
}

NAMESPACE_NAME_LABEL = "kubernetes.io/metadata.name"

INTERNET_CIDR = "0.0.0.0/0"
PRIVATE_CIDRS = [
    "10.0.0.0/8",  # internal Kubernetes cluster IP range
    "172.16.0.0/12",  # common internal IP range
    "192.168.0.0/16",  # common internal IP range
    "198.18.0.0/15",  # private benchmark testing range
]


def create_namespace(
    resource_name: str,
    identity: str,
    annotations: Optional[Dict[str, str]] = None,
    opts: Optional[ResourceOptions] = None,
) -> k8s.core.v1.Namespace:
    """Create the namespace isolating a deployment."""
    return declare(
        f"namespace {identity}",
        lambda: k8s.core.v1.Namespace(
            resource_name,
            metadata=k8s.meta.v1.ObjectMetaArgs(
                name=identity,
                labels=dict(POD_SECURITY_LABELS),
                annotations=annotations or {},
            ),
            opts=opts,
        ),
    )


def _dns_spec(protocol: str) -> k8s.networking.v1.NetworkPolicySpecArgs:
    return k8s.networking.v1.NetworkPolicySpecArgs(
        pod_selector=k8s.meta.v1.LabelSelectorArgs(),
        policy_types=["Egress"],
        egress=[
            k8s.networking.v1.NetworkPolicyEgressRuleArgs(
                to=[
                    k8s.networking.v1.NetworkPolicyPeerArgs(
                        namespace_selector=k8s.meta.v1.LabelSelectorArgs(
                            match_labels={NAMESPACE_NAME_LABEL: "kube-system"},
                        ),
                    ),
                ],
                ports=[
                    k8s.networking.v1.NetworkPolicyPortArgs(port=53, protocol=protocol),
                ],
            ),
        ],
    )


def baseline_specs() -> Dict[str, k8s.networking.v1.NetworkPolicySpecArgs]:
    """
    The fixed rules every deployment namespace gets, whatever it exposes.

    Egress is denied by default then explicitly allowed within the namespace,
    to the cluster DNS and to the internet. Ingress is allowed, as exposure
    is gated by the cluster edge.
    """
    return {
        "deny-all": k8s.networking.v1.NetworkPolicySpecArgs(
            pod_selector=k8s.meta.v1.LabelSelectorArgs(),  # Selects all Pods in the namespace
            policy_types=["Egress"],
        ),
        "allow-same-namespace-ingress": k8s.networking.v1.NetworkPolicySpecArgs(
            pod_selector=k8s.meta.v1.LabelSelectorArgs(),
            policy_types=["Ingress"],
            ingress=[
                # Allow all ingress, internal pods and external sources
                k8s.networking.v1.NetworkPolicyIngressRuleArgs(from_=[]),
            ],
        ),
        "allow-same-namespace-egress": k8s.networking.v1.NetworkPolicySpecArgs(
            pod_selector=k8s.meta.v1.LabelSelectorArgs(),
            policy_types=["Egress"],
            egress=[
                k8s.networking.v1.NetworkPolicyEgressRuleArgs(
                    to=[
                        k8s.networking.v1.NetworkPolicyPeerArgs(
                            pod_selector=k8s.meta.v1.LabelSelectorArgs(),
                        ),
                    ],
                ),
            ],
        ),
        "allow-dns-udp": _dns_spec("UDP"),
        "allow-dns-tcp": _dns_spec("TCP"),
        "allow-internet-all": k8s.networking.v1.NetworkPolicySpecArgs(
            pod_selector=k8s.meta.v1.LabelSelectorArgs(),
            policy_types=["Egress"],
            egress=[
                k8s.networking.v1.NetworkPolicyEgressRuleArgs(
                    to=[
                        k8s.networking.v1.NetworkPolicyPeerArgs(
                            ip_block=k8s.networking.v1.IPBlockArgs(
                                cidr=INTERNET_CIDR,
                                except_=list(PRIVATE_CIDRS),
                            ),
                        ),
                    ],
                ),
            ],
        ),
    }


def create_baseline_policies(
    prefix: str,
    namespace: k8s.core.v1.Namespace,
    opts: Optional[ResourceOptions] = None,
) -> List[k8s.networking.v1.NetworkPolicy]:
    """Create the baseline NetworkPolicies in the deployment namespace."""
    opts = ResourceOptions.merge(opts, ResourceOptions(depends_on=[namespace]))
    return [
        declare(
            f"network policy {name}",
            lambda: k8s.networking.v1.NetworkPolicy(
                f"{prefix}-{name}",
                metadata=k8s.meta.v1.ObjectMetaArgs(
                    name=name,
                    namespace=namespace.metadata.name,
                ),
                spec=spec,
                opts=opts,
            ),
        )
        for name, spec in baseline_specs().items()
    ]


def _port(port: int, protocol: str) -> k8s.networking.v1.NetworkPolicyPortArgs:
    return k8s.networking.v1.NetworkPolicyPortArgs(port=port, protocol=protocol)


def node_port_policy_spec(
    selector: Dict[str, str], port: int, protocol: str, from_cidr: str
) -> k8s.networking.v1.NetworkPolicySpecArgs:
    """Allow ingress on a directly exposed port, from a CIDR."""
    return k8s.networking.v1.NetworkPolicySpecArgs(
        pod_selector=k8s.meta.v1.LabelSelectorArgs(match_labels=selector),
        policy_types=["Ingress"],
        ingress=[
            k8s.networking.v1.NetworkPolicyIngressRuleArgs(
                from_=[
                    k8s.networking.v1.NetworkPolicyPeerArgs(
                        ip_block=k8s.networking.v1.IPBlockArgs(cidr=from_cidr),
                    ),
                ],
                ports=[_port(port, protocol)],
            ),
        ],
    )


def ingress_policy_spec(
    selector: Dict[str, str],
    port: int,
    protocol: str,
    ingress_namespace: str,
    ingress_labels: Dict[str, str],
) -> k8s.networking.v1.NetworkPolicySpecArgs:
    """Allow ingress on a port routed by an Ingress, from the ingress controller only."""
    return k8s.networking.v1.NetworkPolicySpecArgs(
        pod_selector=k8s.meta.v1.LabelSelectorArgs(match_labels=selector),
        policy_types=["Ingress"],
        ingress=[
            k8s.networking.v1.NetworkPolicyIngressRuleArgs(
                from_=[
                    k8s.networking.v1.NetworkPolicyPeerArgs(
                        namespace_selector=k8s.meta.v1.LabelSelectorArgs(
                            match_labels={NAMESPACE_NAME_LABEL: ingress_namespace},
                        ),
                        pod_selector=k8s.meta.v1.LabelSelectorArgs(
                            match_labels=ingress_labels,
                        ),
                    ),
                ],
                ports=[_port(port, protocol)],
            ),
        ],
    )

"""Replication of image pull secrets into the deployment namespace."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

import pulumi
import pulumi_kubernetes as k8s
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from pulumi import ResourceOptions

from .base import declare
from .convert import image_pull_secrets


@dataclass
class SecretData:
    """Payload of a Secret to copy."""

    data: Dict[str, str] = field(default_factory=dict)
    type: str = "Opaque"


class SecretSource(Protocol):
    def get(self, namespace: str, name: str) -> Optional[SecretData]: ...


class KubernetesSecretSource:
    """Reads Secrets from the cluster with the official Kubernetes client."""

    def __init__(self, api=None):
        self._api = api

    @property
    def api(self):
        if self._api is None:
            try:
                config.load_incluster_config()
            except ConfigException:
                config.load_kube_config()
            self._api = client.CoreV1Api()
        return self._api

    def get(self, namespace: str, name: str) -> Optional[SecretData]:
        try:
            secret = self.api.read_namespaced_secret(name=name, namespace=namespace)
        except ApiException as exc:
            if exc.status == 404:
                return None
            raise
        return SecretData(data=dict(secret.data or {}), type=secret.type or "Opaque")


class SecretReplicator:
    """
    Copies the image pull secrets referenced by converted workloads.

    A secret missing from the source namespace is skipped: the workload then
    fails at scheduling time with a clear error if it actually needed it.
    """

    def __init__(
        self,
        source: SecretSource,
        namespace: k8s.core.v1.Namespace,
        source_namespace: str = "default",
        opts: Optional[ResourceOptions] = None,
    ):
        self.source = source
        self.namespace = namespace
        self.source_namespace = source_namespace or "default"
        self.opts = ResourceOptions.merge(opts, ResourceOptions(depends_on=[namespace]))

    def replicate(self, objs: List[dict], prefix: str = "kmp") -> List[k8s.core.v1.Secret]:
        out = []
        for name in image_pull_secrets(objs):
            secret = self.source.get(self.source_namespace, name)
            if secret is None:
                pulumi.log.warn(
                    f"kompose: image pull secret {self.source_namespace}/{name} not found, skipping"
                )
                continue

            out.append(
                declare(
                    f"secret {name}",
                    lambda: k8s.core.v1.Secret(
                        f"{prefix}-secret-{name}",
                        metadata=k8s.meta.v1.ObjectMetaArgs(
                            name=name,
                            namespace=self.namespace.metadata.name,
                        ),
                        data=secret.data,
                        type=secret.type,
                        opts=self.opts,
                    ),
                )
            )
            pulumi.log.debug(f"kompose: image pull secret {name} replicated")
        return out

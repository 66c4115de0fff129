"""Kompose component: deploys a docker compose manifest on Kubernetes."""

import os
from typing import Dict, List, Optional

import pulumi
import pulumi_kubernetes as k8s
from pulumi import ResourceOptions

from .base import KomposeArgs
from .convert import KomposeConverter, prepare_objects
from .endpoints import EndpointAggregator
from .exposure import Exposure, ExposureResolver
from .policies import create_baseline_policies, create_namespace
from .secrets import KubernetesSecretSource, SecretReplicator, SecretSource
from .validation import Converter, check


class Kompose(pulumi.ComponentResource):
    """
    Docker Compose to Kubernetes deployment.

    Creates a namespace per instance and isolates it from the others: egress
    is denied but towards the namespace itself, the cluster DNS and the
    internet, and each port binding gets its own ingress exception.

    WARNING: does not support env_file.
    """

    urls: pulumi.Output[Dict[str, Dict[str, str]]]

    def __init__(
        self,
        name: str,
        args: KomposeArgs,
        converter: Optional[Converter] = None,
        secret_source: Optional[SecretSource] = None,
        opts: Optional[ResourceOptions] = None,
    ):
        converter = converter or KomposeConverter(
            binary=os.environ.get("KOMPOSE_BIN", "kompose")
        )
        # Every problem is reported before anything gets created
        objs = check(args, converter)

        super().__init__("chall-kompose:kubernetes:Kompose", name, None, opts)
        child = ResourceOptions(parent=self)

        self.namespace = create_namespace(
            f"{name}-ns", args.identity, args.namespace_annotations, child
        )
        self.policies = create_baseline_policies(name, self.namespace, child)

        replicator = SecretReplicator(
            secret_source or KubernetesSecretSource(),
            self.namespace,
            args.image_pull_secrets_namespace,
            child,
        )
        self.secrets = replicator.replicate(objs, prefix=name)

        self.workloads: Optional[k8s.yaml.v2.ConfigGroup] = None
        workloads = prepare_objects(objs, args.identity)
        if workloads:
            self.workloads = k8s.yaml.v2.ConfigGroup(
                f"{name}-kompose",
                objs=workloads,
                opts=ResourceOptions.merge(
                    child,
                    ResourceOptions(depends_on=[self.namespace, *self.policies, *self.secrets]),
                ),
            )

        resolver = ExposureResolver(args, self.namespace, self.policies, child)
        self.exposures: List[Exposure] = resolver.resolve(objs)

        self.urls = EndpointAggregator(args.hostname).aggregate(self.exposures)
        self.register_outputs({"urls": self.urls})

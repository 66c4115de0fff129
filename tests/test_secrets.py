from types import SimpleNamespace

import pulumi
import pulumi_kubernetes as k8s
import pytest
from kubernetes.client.exceptions import ApiException

from chall_kompose.secrets import KubernetesSecretSource, SecretData, SecretReplicator

from conftest import DC_WITH_IMAGE_PULL_SECRET, DictSecretSource, FakeConverter


class FakeCoreV1Api:
    def __init__(self, secrets=None, status=404):
        self.secrets = secrets or {}
        self.status = status

    def read_namespaced_secret(self, name, namespace):
        key = f"{namespace}/{name}"
        if key not in self.secrets:
            raise ApiException(status=self.status, reason="Not Found")
        return self.secrets[key]


def test_kubernetes_source_found():
    api = FakeCoreV1Api(
        {
            "default/registry": SimpleNamespace(
                data={".dockerconfigjson": "e30="},
                type="kubernetes.io/dockerconfigjson",
            )
        }
    )
    got = KubernetesSecretSource(api=api).get("default", "registry")

    assert got == SecretData(
        data={".dockerconfigjson": "e30="}, type="kubernetes.io/dockerconfigjson"
    )


def test_kubernetes_source_missing():
    assert KubernetesSecretSource(api=FakeCoreV1Api()).get("default", "nope") is None


def test_kubernetes_source_api_error():
    source = KubernetesSecretSource(api=FakeCoreV1Api(status=403))
    with pytest.raises(ApiException):
        source.get("default", "nope")


@pulumi.runtime.test
def test_replicate(mocks):
    source = DictSecretSource(
        {
            "registries/my-registry-secret": SecretData(
                data={".dockerconfigjson": "e30="}, type="kubernetes.io/dockerconfigjson"
            )
        }
    )
    ns = k8s.core.v1.Namespace(
        "secrets1-ns", metadata=k8s.meta.v1.ObjectMetaArgs(name="secrets1")
    )
    objs = FakeConverter().convert(DC_WITH_IMAGE_PULL_SECRET, "secrets1")

    secrets = SecretReplicator(source, ns, "registries").replicate(objs, prefix="secrets1")

    assert source.lookups == ["registries/my-registry-secret"]
    assert len(secrets) == 1

    def check(_):
        inputs = mocks.of_type("kubernetes:core/v1:Secret", "secrets1-secret-")[0].inputs
        assert inputs["metadata"] == {"name": "my-registry-secret", "namespace": "secrets1"}
        assert inputs["data"] == {".dockerconfigjson": "e30="}
        assert inputs["type"] == "kubernetes.io/dockerconfigjson"

    return secrets[0].urn.apply(check)


@pulumi.runtime.test
def test_replicate_missing_secret_is_skipped(mocks):
    source = DictSecretSource()
    ns = k8s.core.v1.Namespace(
        "secrets2-ns", metadata=k8s.meta.v1.ObjectMetaArgs(name="secrets2")
    )
    objs = FakeConverter().convert(DC_WITH_IMAGE_PULL_SECRET, "secrets2")

    secrets = SecretReplicator(source, ns).replicate(objs, prefix="secrets2")

    assert secrets == []
    # Defaults to the default namespace
    assert source.lookups == ["default/my-registry-secret"]
    assert mocks.of_type("kubernetes:core/v1:Secret", "secrets2-") == []

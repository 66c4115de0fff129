"""Docker compose conversion through the kompose CLI."""

import copy
import os
import subprocess
import tempfile
from typing import Dict, Iterator, List, Optional

import pulumi
import yaml

from .base import ConversionError
from .containers import port_key


WORKLOAD_KINDS = ("Deployment", "StatefulSet", "DaemonSet", "ReplicaSet", "Job")


class KomposeConverter:
    """
    Wrapper around the kompose binary.

    Every call works in its own scratch directory, created under ``workdir``
    (the system temporary directory if unset) and removed whatever happens.
    """

    def __init__(self, binary: str = "kompose", workdir: Optional[str] = None):
        self.binary = binary
        self.workdir = workdir

    def command(self, infile: str, outfile: str) -> List[str]:
        # Defaults of the kompose CLI. The namespace is not
        # passed, else kompose also emits a Namespace object.
        return [
            self.binary,
            "--file",
            infile,
            "--provider",
            "kubernetes",
            "convert",
            "--out",
            outfile,
            "--build",
            "none",
            "--volumes",
            "persistentVolumeClaim",
            "--replicas",
            "1",
            "--indent",
            "2",
        ]

    def convert(self, manifest: str, identity: str) -> List[dict]:
        """Convert a docker compose manifest to Kubernetes objects."""
        if self.workdir:
            os.makedirs(self.workdir, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix="kompose-", dir=self.workdir) as tmp:
            infile = os.path.join(tmp, "docker-compose.yaml")
            outfile = os.path.join(tmp, "manifest.yaml")
            with open(infile, "w", encoding="utf-8") as f:
                f.write(manifest)

            cmd = self.command(infile, outfile)
            pulumi.log.debug(f"kompose: converting manifest of {identity}: {' '.join(cmd)}")
            try:
                subprocess.run(cmd, capture_output=True, text=True, check=True, cwd=tmp)
            except FileNotFoundError as exc:
                raise ConversionError(f"kompose binary not found: {self.binary}") from exc
            except subprocess.CalledProcessError as exc:
                raise ConversionError(
                    f"kompose conversion failed: {(exc.stderr or exc.stdout or '').strip()}"
                ) from exc

            if not os.path.exists(outfile):
                return []
            with open(outfile, encoding="utf-8") as f:
                objs = parse_manifest(f.read())

        pulumi.log.debug(f"kompose: {len(objs)} objects converted for {identity}")
        return objs


def parse_manifest(text: str) -> List[dict]:
    """Load a multi-document manifest, flattening ``kind: List`` documents."""
    try:
        docs = list(yaml.safe_load_all(text))
    except yaml.YAMLError as exc:
        raise ConversionError(f"kompose produced an invalid manifest: {exc}") from exc

    objs = []
    for doc in docs:
        if not doc or not isinstance(doc, dict):
            continue
        if doc.get("kind") == "List":
            objs.extend(item for item in doc.get("items") or [] if isinstance(item, dict))
        else:
            objs.append(doc)
    return objs


def services(objs: List[dict]) -> List[dict]:
    return [obj for obj in objs if obj.get("kind") == "Service"]


def service_ports(svc: dict) -> List[str]:
    """Ordered port keys a converted Service listens on."""
    return [
        port_key(p["port"], p.get("protocol", ""))
        for p in svc.get("spec", {}).get("ports") or []
    ]


def _pod_specs(obj: dict) -> Iterator[Dict]:
    kind = obj.get("kind")
    spec = obj.get("spec") or {}
    if kind in WORKLOAD_KINDS:
        yield spec.setdefault("template", {}).setdefault("spec", {})
    elif kind == "CronJob":
        job = spec.setdefault("jobTemplate", {}).setdefault("spec", {})
        yield job.setdefault("template", {}).setdefault("spec", {})
    elif kind == "Pod":
        yield spec


def image_pull_secrets(objs: List[dict]) -> List[str]:
    """Names of the image pull secrets referenced by workloads, deduplicated."""
    names: List[str] = []
    for obj in objs:
        for pod in _pod_specs(copy.deepcopy(obj)):
            for ref in pod.get("imagePullSecrets") or []:
                name = ref.get("name", "")
                if name and name not in names:
                    names.append(name)
    return names


def prepare_objects(objs: List[dict], namespace: str) -> List[dict]:
    """
    Copy the converted objects to deploy as-is.

    Services are left out as they are created explicitly, so are Namespace
    objects. The namespace is injected on objects that lack one and
    ServiceAccount token auto-mount is disabled on every pod template.
    """
    out = []
    for obj in objs:
        if obj.get("kind") in ("Service", "Namespace"):
            continue
        obj = copy.deepcopy(obj)
        meta = obj.setdefault("metadata", {})
        if not meta.get("namespace"):
            meta["namespace"] = namespace
        for pod in _pod_specs(obj):
            pod["automountServiceAccountToken"] = False
        out.append(obj)
    return out

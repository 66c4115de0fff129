"""Pulumi program deploying the configured compose manifest."""

import pulumi

from .config import load_args
from .kompose import Kompose


def main() -> Kompose:
    kmp = Kompose("kompose", load_args())
    pulumi.export("connection_info", kmp.urls)
    return kmp

import functools

import pulumi

from chall_kompose import program
from chall_kompose.base import KomposeArgs
from chall_kompose.containers import ExposeType, PortBinding
from chall_kompose.kompose import Kompose

from conftest import DC_VIP_ONLY, DictSecretSource, FakeConverter


@pulumi.runtime.test
def test_main_exports_connection_info(monkeypatch):
    exported = {}
    args = KomposeArgs(
        identity="b1b1c2d3",
        hostname="24hiut25.ctfer.io",
        yaml=DC_VIP_ONLY,
        ports={"node": [PortBinding(3000, expose_type=ExposeType.NODE_PORT)]},
    )
    monkeypatch.setattr(program, "load_args", lambda: args)
    monkeypatch.setattr(
        program,
        "Kompose",
        functools.partial(Kompose, converter=FakeConverter(), secret_source=DictSecretSource()),
    )
    monkeypatch.setattr(program.pulumi, "export", lambda name, value: exported.update({name: value}))

    kmp = program.main()

    assert exported["connection_info"] is kmp.urls

    def check(urls):
        assert urls == {"node": {"3000/TCP": "24hiut25.ctfer.io:30000"}}

    return kmp.urls.apply(check)

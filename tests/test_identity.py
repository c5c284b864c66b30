from __future__ import annotations

import re

from pyunifiaccess.identity import derive_uuid

_UUID_RE = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")


def test_known_vector() -> None:
    # sha1("28704e28f5b1") = 570a4af9d15d0df3d08820edfaef22b004f8fcaf
    assert derive_uuid("28704e28f5b1") == "570a4af9-d15d-40df-bd08-820edfaef22b"


def test_format_version_and_variant() -> None:
    for device_id in ("hub1", "28704e28f5b1", "7483c2a1-0000", "ünïcode"):
        assert _UUID_RE.match(derive_uuid(device_id)), device_id


def test_deterministic_and_distinct() -> None:
    assert derive_uuid("hub1") == derive_uuid("hub1")
    assert derive_uuid("hub1") != derive_uuid("hub2")

import pytest

from deployer.errors import EmptyImageNames
from deployer.images import ImageNames


def test_for_build_with_build_number():
    names = ImageNames.for_build("svc", "prod", "42")

    assert list(names) == ["svc:prod-build-42", "svc:prod"]
    assert names.primary() == "svc:prod-build-42"


def test_for_build_without_build_number():
    names = ImageNames.for_build("svc", "prod", "")

    assert list(names) == ["svc:prod"]
    assert names.primary() == "svc:prod"


def test_derive_keeps_order_and_primary():
    names = ImageNames.for_build("svc", "prod", "42")
    derived = names.derive("reg.example.com")

    assert list(derived) == ["reg.example.com/svc:prod-build-42", "reg.example.com/svc:prod"]
    assert derived.primary() == "reg.example.com/svc:prod-build-42"
    assert list(names) == ["svc:prod-build-42", "svc:prod"]


def test_derive_strips_trailing_slash():
    derived = ImageNames(["svc:prod"]).derive("reg.example.com/team/")

    assert derived == ["reg.example.com/team/svc:prod"]


def test_empty_ledger_fails():
    names = ImageNames()

    with pytest.raises(EmptyImageNames):
        names.primary()
    with pytest.raises(EmptyImageNames):
        names.derive("reg.example.com")

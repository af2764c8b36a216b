import pytest

from opi_evpn_gw.exceptions import InvalidArgument
from opi_evpn_gw.naming import (
    generate_resource_id,
    resource_id_to_full_name,
    short_id_of,
    validate_resource_name,
    validate_user_settable,
)


def test_full_name_round_trip():
    name = resource_id_to_full_name("svis", "svi0")

    assert name == "//network.opiproject.org/svis/svi0"
    assert short_id_of(name) == "svi0"


def test_generated_ids_are_unique_and_settable():
    first, second = generate_resource_id(), generate_resource_id()

    assert first != second
    validate_user_settable(first)


@pytest.mark.parametrize("value", ["svi0", "opi-bridge9", "a"])
def test_user_settable_accepts(value):
    validate_user_settable(value)


@pytest.mark.parametrize("value", ["", "Svi0", "0svi", "svi-", "svi_0", "a" * 64])
def test_user_settable_rejects(value):
    with pytest.raises(InvalidArgument):
        validate_user_settable(value)


@pytest.mark.parametrize(
    "value",
    ["", "//network.opiproject.org", "//network.opiproject.org/svis//x", "svis/a b"],
)
def test_resource_name_rejects(value):
    with pytest.raises(InvalidArgument):
        validate_resource_name(value)


def test_resource_name_accepts():
    validate_resource_name("//network.opiproject.org/vrfs/opi-vrf8")
    validate_resource_name("svis/svi0")

from decimal import Decimal

import pytest

from antlogistics.validation import ConflictError, NotFoundError, ValidationError


def _create(service, **overrides):
    fields = dict(
        name="North Hub", code="WH-1", address_line="2 Quay St", city="Oslo",
        country_code="no", capacity=1000,
    )
    fields.update(overrides)
    return service.create_warehouse(**fields)


def test_create_normalizes_and_defaults(warehouse_service):
    wh = _create(warehouse_service, code="  WH-1 ")
    assert wh.code == "wh-1"
    assert wh.country_code == "NO"
    assert wh.default_zone == "DEFAULT"
    assert wh.capacity == Decimal("1000")
    assert wh.is_active is True
    assert wh.deactivated_at is None


@pytest.mark.parametrize("casing", ["WH-1", "wh-1", "Wh-1", " wH-1 "])
def test_lookup_by_code_ignores_casing(warehouse_service, casing):
    created = _create(warehouse_service)
    assert warehouse_service.get_warehouse_by_code(casing).id == created.id


def test_duplicate_code_differing_only_in_case_conflicts(warehouse_service):
    _create(warehouse_service, code="WH-1")
    with pytest.raises(ConflictError):
        _create(warehouse_service, code="wh-1")


@pytest.mark.parametrize("country", ["P", "POL", "P1", "1P", "", "  "])
def test_bad_country_code_is_rejected(warehouse_service, country):
    with pytest.raises(ValidationError):
        _create(warehouse_service, country_code=country)


@pytest.mark.parametrize("capacity", [0, -5, "0.00"])
def test_capacity_must_be_positive(warehouse_service, capacity):
    with pytest.raises(ValidationError, match="capacity"):
        _create(warehouse_service, capacity=capacity)


@pytest.mark.parametrize("field", ["name", "code", "address_line", "city"])
def test_blank_required_text_is_rejected(warehouse_service, field):
    with pytest.raises(ValidationError, match="is required"):
        _create(warehouse_service, **{field: "   "})


def test_get_missing_warehouse(warehouse_service):
    with pytest.raises(NotFoundError):
        warehouse_service.get_warehouse("does-not-exist")
    with pytest.raises(NotFoundError):
        warehouse_service.get_warehouse_by_code("nope")


def test_list_hides_inactive_by_default(warehouse_service):
    _create(warehouse_service, code="B")
    _create(warehouse_service, code="A")
    _create(warehouse_service, code="C", is_active=False)

    assert [w.code for w in warehouse_service.list_warehouses()] == ["a", "b"]
    assert [w.code for w in warehouse_service.list_warehouses(include_inactive=True)] == ["a", "b", "c"]


def test_deactivate_is_soft_and_idempotent(warehouse_service):
    wh = _create(warehouse_service)
    first = warehouse_service.deactivate_warehouse(wh.id).deactivated_at
    assert first is not None

    again = warehouse_service.deactivate_warehouse(wh.id)
    assert again.is_active is False
    assert again.deactivated_at == first
    # The code stays taken after deactivation
    with pytest.raises(ConflictError):
        _create(warehouse_service, code="WH-1")


def test_created_inactive_gets_deactivated_at(warehouse_service):
    wh = _create(warehouse_service, is_active=False)
    assert wh.deactivated_at is not None


@pytest.mark.parametrize("capacity", ["0.001", "10.005", 0.004])
def test_capacity_finer_than_cents_is_rejected(warehouse_service, capacity):
    with pytest.raises(ValidationError, match="decimal places"):
        _create(warehouse_service, capacity=capacity)
    assert warehouse_service.list_warehouses(include_inactive=True) == []


def test_capacity_too_large_is_rejected(warehouse_service):
    with pytest.raises(ValidationError, match="too large"):
        _create(warehouse_service, capacity=10**17)


def test_capacity_at_column_limits_is_accepted(warehouse_service):
    assert _create(warehouse_service, capacity="0.01").capacity == Decimal("0.01")
    big = _create(warehouse_service, code="WH-2", capacity="9999999999999999.99")
    assert big.capacity == Decimal("9999999999999999.99")


@pytest.mark.parametrize(
    "field, value",
    [
        ("default_zone", "Z" * 51),
        ("code", "c" * 51),
        ("name", "n" * 201),
        ("postal_code", "9" * 21),
    ],
)
def test_over_long_text_is_rejected(warehouse_service, field, value):
    with pytest.raises(ValidationError, match="exceeds max length"):
        _create(warehouse_service, **{field: value})


def test_default_zone_at_column_length_is_accepted(warehouse_service):
    assert _create(warehouse_service, default_zone="Z" * 50).default_zone == "Z" * 50

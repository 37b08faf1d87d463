import pytest

from services.access_control import grant_access
from services.allocations import dissolve_allocation, extend_horizon
from services.errors import AccessDenied, AllocationNotFound, ClockRegression
from services.performance import retrieve_performance_analytics
from services.reporting import (
    calculate_effective_allocation,
    evaluate_treasury_permissions,
    fetch_allocation_details,
    generate_treasury_overview,
    verify_treasury_manager,
)


def test_details_round_trip(make_allocation, tx):
    allocation_id = make_allocation(
        now=1000,
        label="Gold hedge",
        percentage=1250,
        thesis="Debasement insurance",
        asset_classes=["gold", "silver", "miners"],
    )
    details = fetch_allocation_details(tx("alice", 1000), allocation_id)

    assert details["label"] == "Gold hedge"
    assert details["percentage"] == 1250
    assert details["thesis"] == "Debasement insurance"
    assert details["target_asset_classes"] == ["gold", "silver", "miners"]
    assert details["manager"] == "alice"
    assert details["rebalancing_window_active"] is True


def test_details_require_read_tier(make_allocation, tx):
    allocation_id = make_allocation()
    with pytest.raises(AccessDenied):
        fetch_allocation_details(tx("mallory", 1001), allocation_id)

    grant_access(tx("alice", 1001), allocation_id, "bob", 25)
    assert fetch_allocation_details(tx("bob", 1002), allocation_id)["allocation_id"] == allocation_id


def test_window_expiry_scenario(make_allocation, tx):
    allocation_id = make_allocation(now=1000, duration=100, percentage=3000)
    assert calculate_effective_allocation(tx("anyone", 1099), allocation_id) == 3000

    assert calculate_effective_allocation(tx("anyone", 1150), allocation_id) == 0
    details = fetch_allocation_details(tx("alice", 1150), allocation_id)
    assert details["rebalancing_window_active"] is False


def test_extension_before_expiry_restores_activity(make_allocation, tx):
    allocation_id = make_allocation(now=1000, duration=100, percentage=3000)
    extend_horizon(tx("alice", 1050), allocation_id, 100)

    assert calculate_effective_allocation(tx("anyone", 1150), allocation_id) == 3000
    assert fetch_allocation_details(tx("alice", 1199), allocation_id)["rebalancing_window_active"] is True
    assert calculate_effective_allocation(tx("anyone", 1200), allocation_id) == 0


def test_effective_allocation_missing_or_dissolved_is_zero(make_allocation, tx):
    assert calculate_effective_allocation(tx(), 404) == 0

    allocation_id = make_allocation()
    dissolve_allocation(tx("alice", 1001), allocation_id)
    assert calculate_effective_allocation(tx("alice", 1001), allocation_id) == 0


def test_dissolve_removes_details_and_analytics(make_allocation, tx):
    allocation_id = make_allocation()
    dissolve_allocation(tx("alice", 1001), allocation_id)

    with pytest.raises(AllocationNotFound):
        fetch_allocation_details(tx("alice", 1002), allocation_id)
    with pytest.raises(AllocationNotFound):
        retrieve_performance_analytics(tx("alice", 1002), allocation_id)


def test_overview_counts_every_allocation_ever_created(make_allocation, tx):
    first = make_allocation()
    make_allocation(now=1001)
    dissolve_allocation(tx("alice", 1002), first)

    overview = generate_treasury_overview(tx("anyone", 1003))
    assert overview == {
        "total_allocations_ever_created": 2,
        "controller": "controller",
        "current_time": 1003,
    }


def test_reads_reject_clock_regression(make_allocation, tx):
    make_allocation(now=1000)
    with pytest.raises(ClockRegression):
        generate_treasury_overview(tx("anyone", 999))


def test_verify_manager(make_allocation):
    allocation_id = make_allocation(caller="treasurer")
    assert verify_treasury_manager(allocation_id) == "treasurer"
    with pytest.raises(AllocationNotFound):
        verify_treasury_manager(allocation_id + 1)


def test_evaluate_permissions_for_manager(make_allocation, tx):
    allocation_id = make_allocation(now=1000, duration=100)
    summary = evaluate_treasury_permissions(tx("anyone", 1000), allocation_id, "alice")

    assert summary["permission_level"] == 100
    assert summary["is_manager"] is True
    assert summary["can_view_details"] is True
    assert summary["can_view_analytics"] is True
    assert summary["can_update_metrics"] is True
    assert summary["can_manage"] is True
    assert summary["rebalancing_window_active"] is True


def test_evaluate_permissions_for_delegate(make_allocation, tx):
    allocation_id = make_allocation(now=1000, duration=100)
    grant_access(tx("alice", 1000), allocation_id, "bob", 50)
    summary = evaluate_treasury_permissions(tx("anyone", 1200), allocation_id, "bob")

    assert summary["permission_level"] == 50
    assert summary["is_manager"] is False
    assert summary["can_view_details"] is True
    assert summary["can_view_analytics"] is True
    assert summary["can_update_metrics"] is False
    assert summary["can_manage"] is False
    assert summary["rebalancing_window_active"] is False


def test_evaluate_permissions_for_stranger(make_allocation, tx):
    allocation_id = make_allocation()
    summary = evaluate_treasury_permissions(tx("anyone", 1000), allocation_id, "mallory")
    assert summary["permission_level"] == 0
    assert not any(
        summary[k] for k in ("can_view_details", "can_view_analytics", "can_update_metrics", "can_manage")
    )


def test_evaluate_permissions_missing_allocation(registry, tx):
    with pytest.raises(AllocationNotFound):
        evaluate_treasury_permissions(tx(), 1, "alice")

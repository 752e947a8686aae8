import polyline
import pytest

from wayfinder.router.errors import MalformedRouteError
from wayfinder.router.models import GeometryPoint, RouteModel
from wayfinder.router.provider_adapter import estimate_way_points, to_route_model

POINTS = [(9.03, 38.7578), (9.04, 38.758), (9.05, 38.76)]


def test_geometry_is_inverted_decoded_pairs(provider_path):
    path = provider_path(POINTS)
    decoded = polyline.decode(path["points"])

    route = to_route_model(path)

    assert len(route.geometry) == len(decoded) == 3
    for point, (lat, lng) in zip(route.geometry, decoded):
        assert isinstance(point, GeometryPoint)
        assert point.as_tuple() == (lng, lat)


def test_totals_come_from_the_provider(provider_path):
    # Instruction distances deliberately do not add up to the path distance.
    path = provider_path(POINTS, instructions=[
        {"text": "Head north", "distance": 10.0, "time": 1000},
    ], distance=4321.5, time=301000)

    route = to_route_model(path)

    assert route.distance_meters == 4321.5
    assert route.duration_millis == 301000
    assert len(route.segments) == 1
    assert route.segments[0].distance_meters == 4321.5
    assert route.segments[0].duration_millis == 301000


def test_instructions_become_steps(provider_path):
    route = to_route_model(provider_path(POINTS))

    steps = route.segments[0].steps
    assert [s.instruction for s in steps] == ["Head north", "Arrive at destination"]
    assert steps[0].distance_meters == 1200.0
    assert steps[0].duration_millis == 90000


def test_optional_step_fields_may_be_missing(provider_path):
    route = to_route_model(provider_path(POINTS, instructions=[{"text": "Go"}]))

    step = route.segments[0].steps[0]
    assert step.distance_meters is None
    assert step.duration_millis is None
    assert step.way_points == (0,)


def test_provider_intervals_are_used_when_present(provider_path):
    path = provider_path(POINTS, instructions=[
        {"text": "Head north", "distance": 1200.0, "time": 90000, "interval": [0, 1]},
        {"text": "Arrive", "distance": 0.0, "time": 0, "interval": [1, 2]},
    ])

    route = to_route_model(path)

    assert [s.way_points for s in route.steps] == [(0, 1), (1, 2)]


def test_out_of_range_interval_is_rejected(provider_path):
    path = provider_path(POINTS, instructions=[
        {"text": "Head north", "distance": 1200.0, "time": 90000, "interval": [0, 7]},
    ])
    with pytest.raises(MalformedRouteError):
        to_route_model(path)


def test_estimated_way_points_are_clamped_to_geometry(provider_path):
    # 1200 m → ~120 estimated points but the geometry only has 3.
    route = to_route_model(provider_path(POINTS))

    assert [s.way_points for s in route.steps] == [(0, 1, 2), (2,)]


# ---------------------------------------------------------------------------
# Approximate way-point heuristic
# ---------------------------------------------------------------------------

def test_estimate_assigns_contiguous_blocks():
    # APPROXIMATE mapping: ~one point per 10 m, at least one per instruction.
    blocks = estimate_way_points([25.0, 4.0, None, 10.0], 100)
    assert blocks == [(0, 1, 2), (3,), (4,), (5,)]


def test_estimate_rounds_half_up():
    assert estimate_way_points([15.0], 100) == [(0, 1)]
    assert estimate_way_points([14.9], 100) == [(0,)]


def test_estimate_is_non_decreasing_across_steps():
    blocks = estimate_way_points([500.0, 300.0, 20.0], 40)
    flat = [i for block in blocks for i in block]
    assert flat == sorted(flat)
    assert max(flat) == 39


# ---------------------------------------------------------------------------
# Rejections
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("points", [None, "", 42])
def test_missing_geometry_is_rejected(provider_path, points):
    path = provider_path(POINTS)
    path["points"] = points
    with pytest.raises(MalformedRouteError):
        to_route_model(path)


def test_single_point_geometry_is_rejected(provider_path):
    with pytest.raises(MalformedRouteError):
        to_route_model(provider_path([(9.03, 38.7578)]))


def test_truncated_polyline_is_rejected(provider_path):
    path = provider_path(POINTS)
    path["points"] = "_p~iF"
    with pytest.raises(MalformedRouteError):
        to_route_model(path)


@pytest.mark.parametrize("field", ["distance", "time"])
def test_missing_totals_are_rejected(provider_path, field):
    path = provider_path(POINTS)
    del path[field]
    with pytest.raises(MalformedRouteError):
        to_route_model(path)


def test_instructions_must_be_objects(provider_path):
    path = provider_path(POINTS, instructions=["turn left"])
    with pytest.raises(MalformedRouteError):
        to_route_model(path)


def test_not_a_dict_is_rejected():
    with pytest.raises(MalformedRouteError):
        to_route_model(["points"])


def test_result_round_trips_through_dict(provider_path):
    route = to_route_model(provider_path(POINTS))
    assert RouteModel.from_dict(route.to_dict()) == route

import pytest

from wayfinder.router.errors import MalformedRouteError
from wayfinder.router.models import (
    GeometryPoint,
    GeoPoint,
    RouteModel,
    Segment,
    Step,
    to_geo_point,
    to_geometry_point,
)

LINE = (GeometryPoint(38.74, 9.0), GeometryPoint(38.75, 9.0), GeometryPoint(38.76, 9.0))


def _segment(*steps, distance=100.0, duration=1000):
    return Segment(steps=steps, distance_meters=distance, duration_millis=duration)


def test_conversion_swaps_order_only():
    geo = GeoPoint(lat=9.03, lng=38.7578)
    geometry = to_geometry_point(geo)

    assert geometry.as_tuple() == (38.7578, 9.03)
    assert to_geo_point(geometry) == geo


def test_coordinate_types_never_compare_equal():
    assert GeoPoint(9.0, 38.0) != GeometryPoint(38.0, 9.0)
    assert GeoPoint(9.0, 38.0) != GeometryPoint(9.0, 38.0)


@pytest.mark.parametrize("lat,lng", [(91.0, 0.0), (-90.5, 0.0), (0.0, 180.5)])
def test_geo_point_range_is_checked(lat, lng):
    with pytest.raises(ValueError):
        GeoPoint(lat, lng)


def test_route_needs_two_geometry_points():
    with pytest.raises(MalformedRouteError):
        RouteModel(LINE[:1], (_segment(),), 100.0, 1000)


def test_route_needs_a_segment():
    with pytest.raises(MalformedRouteError):
        RouteModel(LINE, (), 0.0, 0)


def test_route_geometry_must_be_lng_lat_points():
    geo_line = tuple(to_geo_point(p) for p in LINE)
    with pytest.raises(MalformedRouteError):
        RouteModel(geo_line, (_segment(),), 100.0, 1000)


def test_route_totals_must_match_segments():
    with pytest.raises(MalformedRouteError):
        RouteModel(LINE, (_segment(distance=100.0),), 150.0, 1000)
    with pytest.raises(MalformedRouteError):
        RouteModel(LINE, (_segment(duration=1000),), 100.0, 2000)


def test_route_totals_sum_over_segments():
    route = RouteModel(
        LINE,
        (_segment(distance=100.0, duration=1000), _segment(distance=50.5, duration=500)),
        150.5,
        1500,
    )
    assert len(route.segments) == 2


def test_way_points_must_be_in_range():
    with pytest.raises(MalformedRouteError):
        RouteModel(LINE, (_segment(Step("Go", way_points=(0, 3))),), 100.0, 1000)


def test_way_points_must_not_decrease_across_steps():
    segment = _segment(Step("A", way_points=(1, 2)), Step("B", way_points=(0,)))
    with pytest.raises(MalformedRouteError):
        RouteModel(LINE, (segment,), 100.0, 1000)


def test_steps_without_way_points_are_allowed():
    segment = _segment(Step("A"), Step("B", 20.0, 300, (1, 2)))
    route = RouteModel(list(LINE), [segment], 100.0, 1000)

    assert isinstance(route.geometry, tuple)
    assert [s.instruction for s in route.steps] == ["A", "B"]
    assert route.origin == LINE[0]
    assert route.destination == LINE[-1]


def test_route_is_immutable():
    route = RouteModel(LINE, (_segment(),), 100.0, 1000)
    with pytest.raises(AttributeError):
        route.distance_meters = 5.0


def test_dict_form_matches_stored_route_shape():
    route = RouteModel(LINE, (_segment(Step("Go", 100.0, 1000, (0, 1, 2))),), 100.0, 1000)
    data = route.to_dict()

    assert data["geometry"]["type"] == "LineString"
    assert data["geometry"]["coordinates"][0] == [38.74, 9.0]
    assert data["segments"][0]["steps"][0] == {
        "instruction": "Go", "distance": 100.0, "duration": 1000, "way_points": [0, 1, 2],
    }
    assert RouteModel.from_dict(data) == route

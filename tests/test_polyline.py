import polyline
import pytest

from services.route_relay.app.errors import DecodeError
from services.route_relay.app.polyline import decode_polyline

REFERENCE_POINTS = [[-120.2, 38.5], [-120.95, 40.7], [-126.453, 43.252]]
REFERENCE_ENCODED = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"


def test_decode_reference_polyline() -> None:
    coords = decode_polyline(REFERENCE_ENCODED)
    assert len(coords) == 3
    for (lng, lat), (exp_lng, exp_lat) in zip(coords, REFERENCE_POINTS):
        assert lng == pytest.approx(exp_lng, abs=1e-5)
        assert lat == pytest.approx(exp_lat, abs=1e-5)


def test_decode_empty_string() -> None:
    assert decode_polyline("") == []


def test_decode_matches_library_encoding() -> None:
    path = [(76.95583, 11.01684), (76.95582, 11.01683), (76.96, 11.0), (0.0, 0.0)]
    encoded = polyline.encode(path, geojson=True)
    decoded = decode_polyline(encoded)
    assert decoded == [pytest.approx(list(point), abs=1e-9) for point in path]


def test_decode_extreme_coordinates() -> None:
    path = [(-180.0, -90.0), (180.0, 90.0), (-179.99999, 89.99999)]
    decoded = decode_polyline(polyline.encode(path, geojson=True))
    assert decoded == [pytest.approx(list(point), abs=1e-9) for point in path]


def test_decode_single_point_at_origin() -> None:
    assert decode_polyline("??") == [[0.0, 0.0]]


@pytest.mark.parametrize(
    "encoded",
    [
        "_p~iF~ps|U_",  # continuation bit set on the last character
        "_p~iF",  # latitude without longitude
        "_p~iF~ps|U_ulLnnqC_mqNvxq",
    ],
)
def test_truncated_polyline_raises(encoded: str) -> None:
    with pytest.raises(DecodeError):
        decode_polyline(encoded)


def test_character_below_offset_raises() -> None:
    with pytest.raises(DecodeError):
        decode_polyline("_p~iF ps|U")


def test_overlong_value_raises() -> None:
    with pytest.raises(DecodeError):
        decode_polyline("~" * 300 + "??")


def test_seven_group_value_is_accepted() -> None:
    # six continuation groups and a terminator
    decoded = decode_polyline("~~~~~~??")
    assert len(decoded) == 1

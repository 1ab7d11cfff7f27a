import pytest
from shapely.geometry import MultiPolygon, Polygon

from yongdeng_eco.geometry import GeometryError, MultiPolygonField

SQUARE = "MULTIPOLYGON (((0 0, 1 0, 1 1, 0 1, 0 0)))"
TWO_SQUARES = (
    "MULTIPOLYGON (((0 0, 1 0, 1 1, 0 1, 0 0)), "
    "((2 2, 3 2, 3 3, 2 3, 2 2)))"
)


def test_scan_string_gives_multipolygon():
    field = MultiPolygonField.scan(SQUARE)
    assert isinstance(field.geometry, MultiPolygon)
    assert field.geometry.geom_type == "MultiPolygon"


def test_scan_bytes_matches_scan_string():
    from_bytes = MultiPolygonField.scan(TWO_SQUARES.encode("utf-8"))
    from_text = MultiPolygonField.scan(TWO_SQUARES)
    assert from_bytes.geometry.equals(from_text.geometry)
    assert len(from_bytes.geometry.geoms) == 2


def test_scan_none_is_empty_field():
    field = MultiPolygonField.scan(None)
    assert field.geometry is None
    assert field.value() is None


def test_value_round_trip():
    original = MultiPolygonField.scan(TWO_SQUARES)
    text = original.value()
    assert text.startswith("MULTIPOLYGON")
    again = MultiPolygonField.scan(text)
    assert again.geometry.equals(original.geometry)


def test_value_from_constructed_geometry_round_trips():
    shape = MultiPolygon([Polygon([(0, 0), (4, 0), (4, 4), (0, 0)])])
    field = MultiPolygonField(shape)
    assert MultiPolygonField.scan(field.value()).geometry.equals(shape)


@pytest.mark.parametrize("value", [42, 3.5, ["MULTIPOLYGON"], object()])
def test_scan_rejects_unsupported_types(value):
    with pytest.raises(GeometryError):
        MultiPolygonField.scan(value)


def test_scan_rejects_other_geometry_types():
    with pytest.raises(GeometryError):
        MultiPolygonField.scan("POINT (1 2)")


def test_scan_rejects_polygon():
    with pytest.raises(GeometryError):
        MultiPolygonField.scan("POLYGON ((0 0, 1 0, 1 1, 0 1, 0 0))")


@pytest.mark.parametrize("text", ["not wkt", "MULTIPOLYGON (((0 0, 1", ""])
def test_scan_rejects_malformed_wkt(text):
    with pytest.raises(GeometryError):
        MultiPolygonField.scan(text)


def test_scan_rejects_undecodable_bytes():
    with pytest.raises(GeometryError):
        MultiPolygonField.scan(b"\xff\xfe\xfd")


def test_geometry_error_is_value_error():
    with pytest.raises(ValueError):
        MultiPolygonField.scan("POINT (0 0)")
"""MultiPolygon values exchanged with the spatial database as WKT text."""

from __future__ import annotations

from dataclasses import dataclass

from shapely import wkt
from shapely.errors import ShapelyError
from shapely.geometry import MultiPolygon


class GeometryError(ValueError):
    """Raised when a database value cannot be turned into a MultiPolygon."""


@dataclass(frozen=True)
class MultiPolygonField:
    """A nullable MultiPolygon that reads from and writes to WKT."""

    geometry: MultiPolygon | None = None

    @classmethod
    def scan(cls, value: object) -> MultiPolygonField:
        """Build a field from a database value: None, WKT bytes or WKT text."""
        if value is None:
            return cls(None)

        if isinstance(value, (bytes, bytearray, memoryview)):
            try:
                text = bytes(value).decode("utf-8")
            except UnicodeDecodeError as exc:
                raise GeometryError(f"解析 WKT 失败: {exc}") from exc
        elif isinstance(value, str):
            text = value
        else:
            raise GeometryError(
                f"不支持的类型: {type(value).__name__}，无法转换为 MultiPolygon"
            )

        try:
            parsed = wkt.loads(text)
        except (ShapelyError, ValueError, TypeError) as exc:
            raise GeometryError(f"解析 WKT 失败: {exc}") from exc

        if not isinstance(parsed, MultiPolygon):
            raise GeometryError("WKT 内容不是 MultiPolygon 类型")

        return cls(parsed)

    def value(self) -> str | None:
        """Return the WKT text to store, or None for an empty field."""
        if self.geometry is None:
            return None
        return self.geometry.wkt
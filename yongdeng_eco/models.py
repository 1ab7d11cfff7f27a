"""Database tables for the land-use and ecological-risk layers and for users."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import bcrypt
from sqlalchemy import (
    BigInteger,
    DateTime,
    Float,
    Integer,
    Numeric,
    String,
    Text,
    func,
    select,
)
from sqlalchemy.exc import NoResultFound
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column
from sqlalchemy.types import UserDefinedType

BCRYPT_DEFAULT_COST = 10
_BCRYPT_MAX_BYTES = 72


def _now() -> datetime:
    return datetime.now().astimezone()


class Base(DeclarativeBase):
    """Declarative base shared by every table."""


class _WKTGeometry(UserDefinedType):
    """A geometry column that is always read back as WKT text."""

    cache_ok = True

    def __init__(self, type_name: str = "geometry", srid: int | None = None) -> None:
        self.type_name = type_name
        self.srid = srid

    def get_col_spec(self, **kw: Any) -> str:
        if self.srid is None:
            return self.type_name
        return f"{self.type_name}(Geometry,{self.srid})"

    def column_expression(self, colexpr):
        return func.ST_AsText(colexpr, type_=String)


class RiskUsage(Base):
    """A polygon of the combined risk and land-use layer."""

    __tablename__ = "risk_usages"

    id: Mapped[int] = mapped_column("id", Integer, primary_key=True)
    geom: Mapped[str | None] = mapped_column("geom", _WKTGeometry())
    db_id: Mapped[int | None] = mapped_column("Id", BigInteger)
    gridcode: Mapped[int | None] = mapped_column("gridcode", BigInteger)
    shape_leng: Mapped[float | None] = mapped_column("Shape_Leng", Float)
    shape_area: Mapped[float | None] = mapped_column("Shape_Area", Float)

    def to_dict(self) -> dict[str, Any]:
        return {
            "ID": self.id,
            "Geom": self.geom,
            "DBId": self.db_id,
            "Gridcode": self.gridcode,
            "ShapeLeng": self.shape_leng,
            "ShapeArea": self.shape_area,
        }


class Risk(Base):
    """A polygon of the ecological-risk layer."""

    __tablename__ = "risks"

    id: Mapped[int] = mapped_column(
        "id", Integer, primary_key=True, autoincrement=True
    )
    geom: Mapped[str | None] = mapped_column("geom", _WKTGeometry())
    db_id: Mapped[int | None] = mapped_column("Id", BigInteger)
    gridcode: Mapped[int | None] = mapped_column("gridcode", BigInteger)
    shape_leng: Mapped[float | None] = mapped_column(
        "Shape_Leng", Numeric(18, 11, asdecimal=False)
    )
    shape_area: Mapped[float | None] = mapped_column(
        "Shape_Area", Numeric(18, 11, asdecimal=False)
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "ID": self.id,
            "Geom": self.geom,
            "Id": self.db_id,
            "Gridcode": self.gridcode,
            "ShapeLeng": self.shape_leng,
            "ShapeArea": self.shape_area,
        }


class Usage(Base):
    """A polygon of the land-use layer."""

    __tablename__ = "usages"

    id: Mapped[int] = mapped_column(
        "id", Integer, primary_key=True, autoincrement=True
    )
    geom: Mapped[str | None] = mapped_column("geom", _WKTGeometry())
    db_id: Mapped[int | None] = mapped_column("Id", BigInteger)
    gridcode: Mapped[int | None] = mapped_column("gridcode", BigInteger)
    shape_leng: Mapped[float | None] = mapped_column(
        "Shape_Leng", Numeric(18, 11, asdecimal=False)
    )
    shape_area: Mapped[float | None] = mapped_column(
        "Shape_Area", Numeric(18, 11, asdecimal=False)
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "ID": self.id,
            "Geom": self.geom,
            "Id": self.db_id,
            "Gridcode": self.gridcode,
            "ShapeLeng": self.shape_leng,
            "ShapeArea": self.shape_area,
        }


class User(Base):
    """A registered account; the password column holds a bcrypt hash."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=_now
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=_now, onupdate=_now
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), index=True
    )
    username: Mapped[str | None] = mapped_column(Text)
    email: Mapped[str | None] = mapped_column(Text)
    password: Mapped[str | None] = mapped_column(Text)

    def verify_password(self, input_password: str) -> bool:
        """Check a plain-text password against the stored hash."""
        if not self.password:
            return False
        candidate = input_password.encode()[:_BCRYPT_MAX_BYTES]
        stored_hash = self.password.encode()
        try:
            return bcrypt.checkpw(candidate, stored_hash)
        except ValueError:
            return False


def _by_gridcode(session: Session, model: type[Base], gridcode: int) -> list:
    stmt = select(model).where(model.gridcode == gridcode)
    return list(session.scalars(stmt))


def get_risk_usage_by_gridcode(session: Session, gridcode: int) -> list[RiskUsage]:
    """Return every risk/usage polygon with the given grid code."""
    return _by_gridcode(session, RiskUsage, gridcode)


def get_risks_by_gridcode(session: Session, gridcode: int) -> list[Risk]:
    """Return every risk polygon with the given grid code."""
    return _by_gridcode(session, Risk, gridcode)


def get_usages_by_gridcode(session: Session, gridcode: int) -> list[Usage]:
    """Return every land-use polygon with the given grid code."""
    return _by_gridcode(session, Usage, gridcode)


def create_user(session: Session, user: User) -> None:
    """Hash the user's password in place and store the user."""
    raw = (user.password or "").encode()
    if len(raw) > _BCRYPT_MAX_BYTES:
        raise ValueError("bcrypt: password length exceeds 72 bytes")
    salt = bcrypt.gensalt(rounds=BCRYPT_DEFAULT_COST, prefix=b"2a")
    hashed = bcrypt.hashpw(raw, salt)
    user.password = hashed.decode()

    session.add(user)
    try:
        session.commit()
    except Exception:
        session.rollback()
        raise


def get_user_by_username(session: Session, username: str) -> User:
    """Return the first live user with this name, or raise NoResultFound."""
    stmt = (
        select(User)
        .where(User.username == username, User.deleted_at.is_(None))
        .order_by(User.id)
        .limit(1)
    )
    user = session.scalars(stmt).first()
    if user is None:
        raise NoResultFound("record not found")
    return user
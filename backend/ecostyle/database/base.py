"""
Declarative base for the catalog and order tables.

Every table gets an application-generated UUID primary key and
database-maintained ``created_at``/``updated_at`` columns. Index, unique and
foreign key names follow one convention so they are stable across
environments; check constraints are named explicitly on each model.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, MetaData, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(AsyncAttrs, DeclarativeBase):
    """Declarative base with async attribute loading."""

    __abstract__ = True

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    type_annotation_map = {
        datetime: DateTime(timezone=True),
        uuid.UUID: UUID(as_uuid=True),
    }

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={getattr(self, 'id', None)!r})>"


class RecordMixin:
    """UUID primary key plus creation and modification timestamps."""

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
        comment="Record identifier",
    )

    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        index=True,
        comment="When the record was created",
    )

    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        comment="When the record was last changed",
    )


class BaseModel(RecordMixin, Base):
    """
    Abstract parent of every EcoStyle table.

    Example:
        class Product(BaseModel):
            __tablename__ = "products"

            name: Mapped[str] = mapped_column(String(100))
    """

    __abstract__ = True

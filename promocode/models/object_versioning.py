# promocode/models/object_versioning.py
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from promocode.core.db import Base
from promocode.models.base import utcnow


class ObjectVersioning(Base):
    """Append-only before/after snapshot of one mutation on a tracked object."""

    __tablename__ = "object_versionings"
    __table_args__ = (
        Index("ix_object_versionings_object", "object_type", "object_tenant", "object_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    object_type: Mapped[str] = mapped_column(String(128), nullable=False)
    # no FK: audit rows outlive whatever they describe
    object_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    object_tenant: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    before_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)  # None on creation
    after_value: Mapped[str] = mapped_column(Text, nullable=False)

    updated_on: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_by: Mapped[str] = mapped_column(String(255), nullable=False)

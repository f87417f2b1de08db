# promocode/models/promotional_code.py
from __future__ import annotations

import enum
import uuid

from sqlalchemy import CheckConstraint, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from promocode.core.db import Base
from promocode.models.base import AuditColumnsMixin


class PromoCodeStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DELETED = "deleted"


class PromotionalCode(AuditColumnsMixin, Base):
    __tablename__ = "promotional_codes"
    __table_args__ = (
        CheckConstraint("remaining_uses >= 0", name="promotional_codes_remaining_uses_chk"),
        CheckConstraint("max_uses >= 0", name="promotional_codes_max_uses_chk"),
        CheckConstraint(
            "status IN ('active','inactive','deleted')",
            name="promotional_codes_status_chk",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # lookup key for redemption; not unique at the schema level
    code: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    remaining_uses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_uses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    status: Mapped[str] = mapped_column(Text, nullable=False, default=PromoCodeStatus.ACTIVE.value)

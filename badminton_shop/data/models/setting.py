from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime

from badminton_shop.data.database import Base


class SettingModel(Base):
    """Store-wide key/value setting. Values are stored as text and typed by value_type."""

    __tablename__ = "settings"

    id = Column(Integer, primary_key=True)
    key = Column(String(100), nullable=False, unique=True)
    value = Column(Text, nullable=True)
    # text | number | boolean | json
    value_type = Column(String(20), nullable=False, default="text")
    category = Column(String(50), nullable=False, default="general", index=True)
    display_name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    is_public = Column(Boolean, nullable=False, default=False)

    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Boolean, DateTime

from badminton_shop.data.database import Base


class BannerModel(Base):
    __tablename__ = "banners"

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False, default="")
    subtitle = Column(String(500), nullable=True)
    tag_text = Column(String(100), nullable=True)
    tag_type = Column(String(50), nullable=True)
    button_text = Column(String(100), nullable=True)
    button_link = Column(String(500), nullable=True)
    background_image = Column(String(500), nullable=False)
    background_gradient = Column(String(255), nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

from sqlalchemy import Boolean, Column, DateTime, Float, Integer, String, Text
from sqlalchemy.sql import func

from app.db.database import Base


class Issue(Base):
    __tablename__ = "issues"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, default="reported", index=True)
    latitude = Column(Float, nullable=False, index=True)
    longitude = Column(Float, nullable=False, index=True)
    address = Column(String, nullable=True)
    reporter_id = Column(String, nullable=True, index=True)
    is_anonymous = Column(Boolean, nullable=False, default=False)
    is_hidden = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __init__(
        self,
        title,
        description,
        category,
        latitude,
        longitude,
        address=None,
        reporter_id=None,
        is_anonymous=False,
        is_hidden=False,
        status="reported",
    ):
        self.title = title
        self.description = description
        self.category = category
        self.latitude = latitude
        self.longitude = longitude
        self.address = address
        self.reporter_id = reporter_id
        self.is_anonymous = is_anonymous
        self.is_hidden = is_hidden
        self.status = status

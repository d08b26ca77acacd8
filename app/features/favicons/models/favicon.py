from sqlalchemy import Column, DateTime, Index, LargeBinary, String

from app.platform.db.base import BaseModel


class Favicon(BaseModel):
    """
    One cached icon per canonical host.

    expires_at is NULL when the cache runs without a TTL.
    """
    __tablename__ = "favicons"

    domain = Column(String(255), unique=True, nullable=False)
    data = Column(LargeBinary, nullable=False)
    content_type = Column(String(100), nullable=False)
    expires_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_favicons_domain_expires_at", "domain", "expires_at"),
        Index("ix_favicons_expires_at", "expires_at"),
    )

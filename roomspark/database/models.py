"""
Database models for RoomSpark projects, images and products
"""
import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Project(Base):
    """A user's room project; container for uploads, generated images and products"""

    __tablename__ = "user_projects"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(100), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    uploads = relationship("UploadedImage", back_populates="project")
    generated_images = relationship("GeneratedImage", back_populates="project")
    products = relationship("Product", back_populates="project")

    def __repr__(self):
        return f"<Project(id={self.id}, user_id='{self.user_id}', name='{self.name}')>"


class UploadedImage(Base):
    """Normalized photo uploaded by the user"""

    __tablename__ = "user_uploads"

    id = Column(String(36), primary_key=True, default=_uuid)
    project_id = Column(String(36), ForeignKey("user_projects.id"), nullable=False, index=True)
    user_id = Column(String(100), nullable=False, index=True)
    file_path = Column(String(500), nullable=False)
    file_url = Column(Text, nullable=False)
    file_type = Column(String(50), default="image/png")
    file_size = Column(Integer, nullable=False)
    source = Column(String(50), default="upload")
    blur_hash = Column(String(100), nullable=True)  # Added lazily when decode succeeds
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    project = relationship("Project", back_populates="uploads")

    __table_args__ = (Index("idx_upload_project_user", "project_id", "user_id"),)

    def __repr__(self):
        return f"<UploadedImage(id={self.id}, project_id={self.project_id})>"


class GeneratedImage(Base):
    """Styled image produced by a generation provider"""

    __tablename__ = "user_generated"

    id = Column(String(36), primary_key=True, default=_uuid)
    project_id = Column(String(36), ForeignKey("user_projects.id"), nullable=False, index=True)
    user_id = Column(String(100), nullable=False, index=True)
    file_path = Column(String(500), nullable=False)
    file_url = Column(Text, nullable=False)
    file_type = Column(String(50), default="image/png")
    file_size = Column(Integer, nullable=False)
    source = Column(String(50), nullable=False)  # Provider name
    interior_description = Column(JSON, default=list)  # Item descriptions for keyword search
    blur_hash = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    project = relationship("Project", back_populates="generated_images")

    __table_args__ = (Index("idx_generated_project_user", "project_id", "user_id"),)

    def __repr__(self):
        return f"<GeneratedImage(id={self.id}, project_id={self.project_id}, source='{self.source}')>"


class Product(Base):
    """Shoppable product discovered for a generated image"""

    __tablename__ = "user_products"

    id = Column(String(36), primary_key=True, default=_uuid)
    project_id = Column(String(36), ForeignKey("user_projects.id"), nullable=False, index=True)
    user_id = Column(String(100), nullable=False, index=True)
    title = Column(Text, nullable=False, default="")
    price_value = Column(Float, nullable=True)
    price_currency = Column(String(10), nullable=True)
    link = Column(Text, nullable=False, default="")
    image = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    source = Column(String(200), default="")
    in_stock = Column(Boolean, default=False)
    is_affiliate = Column(Boolean, default=False)
    liked = Column(Boolean, default=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    project = relationship("Project", back_populates="products")

    __table_args__ = (Index("idx_product_user_liked", "user_id", "liked"),)

    def __repr__(self):
        return f"<Product(id={self.id}, title='{self.title[:30]}', source='{self.source}')>"

"""
Database module for RoomSpark
"""
from .models import Base, GeneratedImage, Product, Project, UploadedImage

__all__ = [
    "Base",
    "Project",
    "UploadedImage",
    "GeneratedImage",
    "Product",
]

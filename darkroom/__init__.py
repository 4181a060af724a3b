"""Darkroom: gallery model, Cloudinary sync and static preview for a photography portfolio."""

__version__ = "0.1.0"

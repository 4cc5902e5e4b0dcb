# Application Review Package
from .service import ReviewService

__all__ = ["ReviewService"]

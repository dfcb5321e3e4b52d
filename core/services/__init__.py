from .base import BaseService

__all__ = ["BaseService"]

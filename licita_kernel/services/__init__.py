"""Session-backed write services."""

from licita_kernel.services.base import BaseService

__all__ = ["BaseService"]

"""Read-only query selectors."""

from licita_kernel.selectors.base import BaseSelector

__all__ = ["BaseSelector"]

"""Address search and resolution."""

from .address_resolver import AddressResolver

__all__ = ["AddressResolver"]

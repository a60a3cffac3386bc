"""Collaborator directory port.

Users, vendors, menu items and bearer credentials are owned by other
services. The ordering core reads them only through this interface, so the
catalog, identity and role management can evolve without touching the order
lifecycle.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import time


@dataclass(frozen=True)
class UserRecord:
    user_id: str
    first_name: str
    last_name: str = ""
    email: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class VendorRecord:
    vendor_id: str
    name: str
    closing_time: time | None = None


@dataclass(frozen=True)
class MenuItemRecord:
    menu_item_id: str
    vendor_id: str
    name: str
    price: str | None = None


class Directory(ABC):
    """Read-only lookups the ordering core needs from its collaborators."""

    @abstractmethod
    def get_user(self, user_id: str) -> UserRecord | None: ...

    @abstractmethod
    def get_vendor(self, vendor_id: str) -> VendorRecord | None: ...

    @abstractmethod
    def get_menu_item(self, menu_item_id: str) -> MenuItemRecord | None: ...

    @abstractmethod
    def user_for_token(self, token: str) -> str | None:
        """Resolve a bearer credential to a user id, or None when it is not valid."""
        ...

    @abstractmethod
    def vendor_for_user(self, user_id: str) -> str | None:
        """Return the vendor a user operates, or None for non-vendor accounts."""
        ...

    @abstractmethod
    def can_manage_vendor(self, user_id: str, vendor_id: str) -> bool:
        """Capability check: may this user act on the vendor's orders?"""
        ...

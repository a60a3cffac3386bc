"""In-memory directory for development and testing.

Seed it with users, vendors and menu items, issue tokens and grant vendor or
admin access. Lookups behave like the real collaborators: unknown ids return
None instead of raising.
"""

from datetime import time
from uuid import uuid4

from ordering.directory.port import Directory, MenuItemRecord, UserRecord, VendorRecord


class InMemoryDirectory(Directory):
    def __init__(self) -> None:
        self.users: dict[str, UserRecord] = {}
        self.vendors: dict[str, VendorRecord] = {}
        self.menu_items: dict[str, MenuItemRecord] = {}
        self.tokens: dict[str, str] = {}
        self.vendor_staff: dict[str, str] = {}
        self.admins: set[str] = set()

    # -------------------------------------------------------------------
    # Seeding
    # -------------------------------------------------------------------
    def add_user(self, user_id: str, first_name: str = "Test", last_name: str = "User", email=None) -> UserRecord:
        record = UserRecord(user_id=user_id, first_name=first_name, last_name=last_name, email=email)
        self.users[user_id] = record
        return record

    def add_vendor(self, vendor_id: str, name: str = "Test Vendor", closing_time: time | None = None) -> VendorRecord:
        record = VendorRecord(vendor_id=vendor_id, name=name, closing_time=closing_time)
        self.vendors[vendor_id] = record
        return record

    def add_menu_item(
        self, menu_item_id: str, vendor_id: str, name: str = "Menu Item", price="10.00"
    ) -> MenuItemRecord:
        record = MenuItemRecord(menu_item_id=menu_item_id, vendor_id=vendor_id, name=name, price=price)
        self.menu_items[menu_item_id] = record
        return record

    def issue_token(self, user_id: str, token: str | None = None) -> str:
        token = token or uuid4().hex
        self.tokens[token] = user_id
        return token

    def grant_vendor(self, user_id: str, vendor_id: str) -> None:
        self.vendor_staff[user_id] = vendor_id

    def grant_admin(self, user_id: str) -> None:
        self.admins.add(user_id)

    # -------------------------------------------------------------------
    # Directory
    # -------------------------------------------------------------------
    def get_user(self, user_id):
        return self.users.get(str(user_id))

    def get_vendor(self, vendor_id):
        return self.vendors.get(str(vendor_id))

    def get_menu_item(self, menu_item_id):
        return self.menu_items.get(str(menu_item_id))

    def user_for_token(self, token):
        return self.tokens.get(token)

    def vendor_for_user(self, user_id):
        return self.vendor_staff.get(str(user_id))

    def can_manage_vendor(self, user_id, vendor_id):
        if str(user_id) in self.admins:
            return True
        return self.vendor_staff.get(str(user_id)) == str(vendor_id)

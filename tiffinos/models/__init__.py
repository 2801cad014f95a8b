"""
SQLAlchemy models package.
Import all models here to ensure they're registered with Base.metadata.
"""
from tiffinos.models.vendors import Vendor
from tiffinos.models.customers import Customer
from tiffinos.models.subscriptions import Subscription
from tiffinos.models.attendance import Attendance
from tiffinos.models.payments import Payment
from tiffinos.models.menu_items import MenuItem

__all__ = [
    "Vendor",
    "Customer",
    "Subscription",
    "Attendance",
    "Payment",
    "MenuItem",
]

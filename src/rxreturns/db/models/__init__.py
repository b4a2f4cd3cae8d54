"""Re-export all ORM models so Base.metadata has all tables."""

from rxreturns.db.models.inventory import InventoryItem
from rxreturns.db.models.master import Pharmacy, Product, ReverseDistributor
from rxreturns.db.models.packages import CustomPackage, CustomPackageItem
from rxreturns.db.models.reports import ReturnReportRecord
from rxreturns.db.models.returns import Return, ReturnItem

__all__ = [
    "Pharmacy",
    "Product",
    "ReverseDistributor",
    "ReturnReportRecord",
    "InventoryItem",
    "Return",
    "ReturnItem",
    "CustomPackage",
    "CustomPackageItem",
]

# Database modules

from .menu import menu_db, MenuDatabase
from .sales import sales_db, SalesDatabase
from .payments import payment_db, PaymentDatabase

__all__ = [
    "menu_db",
    "MenuDatabase",
    "sales_db",
    "SalesDatabase",
    "payment_db",
    "PaymentDatabase",
]

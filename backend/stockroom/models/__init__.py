from .auth import User, SessionToken
from .inventory import Category, CategoryStatus, Product, ProductStatus
from .sales import SaleRecord

__all__ = [
    'User', 'SessionToken',
    'Category', 'CategoryStatus', 'Product', 'ProductStatus',
    'SaleRecord',
]

from marketplace.models.user import User
from marketplace.models.category import Category
from marketplace.models.product import Product, ProductCondition
from marketplace.models.order import Order, OrderItem, OrderStatus, PaymentStatus
from marketplace.models.cart import CartItem

__all__ = [
    "User",
    "Category",
    "Product",
    "ProductCondition",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "CartItem",
]

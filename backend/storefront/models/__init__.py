from .catalog import Product, ProductVariant
from .settings import StoreSetting, SettingAudit, DeliveryZone
from .carts import Cart, CartLine
from .orders import Order, OrderLine, OrderStatusChange
from .customers import Customer
from .security import SessionToken

__all__ = [
    'Product', 'ProductVariant',
    'StoreSetting', 'SettingAudit', 'DeliveryZone',
    'Cart', 'CartLine',
    'Order', 'OrderLine', 'OrderStatusChange',
    'Customer',
    'SessionToken',
]

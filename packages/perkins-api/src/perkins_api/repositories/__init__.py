from perkins_api.repositories.orders import IllegalStatusChange, OrderRepository
from perkins_api.repositories.overrides import ProductOverrideRepository, ProductOverrides

__all__ = [
    "IllegalStatusChange",
    "OrderRepository",
    "ProductOverrideRepository",
    "ProductOverrides",
]

from .products_view import ProductsView
from .stakeholders_view import CustomersView, SuppliersView
from .stock_view import StockView
from .users_view import UsersView

__all__ = ["ProductsView", "SuppliersView", "CustomersView", "StockView", "UsersView"]

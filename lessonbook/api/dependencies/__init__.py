from .database import get_db
from .services import get_catalog_service, get_order_service

__all__ = ["get_db", "get_catalog_service", "get_order_service"]

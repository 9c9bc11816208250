from .resolver import get_unit_collection, get_global_collection

__all__ = ["get_unit_collection", "get_global_collection"]

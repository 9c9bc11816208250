from .routes import policies_router, principals_router, get_ability
from .service import PolicyService

__all__ = ["policies_router", "principals_router", "get_ability", "PolicyService"]

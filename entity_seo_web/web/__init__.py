from .api import create_api_blueprint
from .routes import create_blueprint

__all__ = ["create_api_blueprint", "create_blueprint"]

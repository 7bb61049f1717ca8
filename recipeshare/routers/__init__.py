# Router modules for the RecipeShare API
# Import order matters - routers register endpoints on the shared api_router

from . import base
from . import auth
from . import recipes
from . import reviews
from . import views

__all__ = ['auth', 'recipes', 'reviews', 'views']

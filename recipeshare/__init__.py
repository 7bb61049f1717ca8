"""
RecipeShare - recipe sharing web service.

This package provides:
- User registration, login sessions and profiles
- Recipe publishing with image uploads, search and favorites
- Reviews with a per-recipe rating summary
"""

__version__ = '1.0.0'
__author__ = 'RecipeShare Team'

__all__ = ['__version__']

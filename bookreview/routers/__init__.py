"""
API Routers Package

Thin HTTP handlers over the services. Routers never build domain errors
themselves; services raise them and main.py maps them to status codes.

Router Structure:
- books.py: /api/v1/books/* read endpoints
- reviews.py: review CRUD and listings
- favorites.py: favorite add/remove/list
- recommendations.py: /api/v1/recommendations/*

Each router is imported and registered in main.py.
"""

from bookreview.routers.books import router as books_router
from bookreview.routers.favorites import router as favorites_router
from bookreview.routers.recommendations import router as recommendations_router
from bookreview.routers.reviews import router as reviews_router

__all__ = [
    "books_router",
    "favorites_router",
    "recommendations_router",
    "reviews_router",
]

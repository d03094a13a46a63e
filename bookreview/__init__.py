"""
Book Review Platform Package

Core of the book-review platform: rating aggregation and recommendations.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy database connection and session management
- exceptions.py: Domain error taxonomy shared by services and routers
- repositories.py: Data-access functions (queries only, no business rules)
- main.py: FastAPI application factory and configuration
- dependencies.py: Dependency injection functions
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic (ratings, reviews, favorites, recommendations,
  AI and cover-image clients)
"""

__version__ = "0.1.0"

"""
Services Package

Business logic, kept separate from HTTP handling so every operation can be
called (and tested) with nothing but a Session.

Current services:
- ratings.py: Book rating aggregate recalculation and statistics
- reviews.py: Review create/update/delete with inline aggregate updates
- favorites.py: A user's favorite books
- users.py: User lookup and deletion (with aggregate repair)
- books.py: Book lookup and deletion
- recommendations.py: Personalized and AI-assisted recommendations
- ai.py: Client for the AI text generation API
- covers.py: Cover image lookup with placeholder fallback
- security.py: Bearer token decoding
"""

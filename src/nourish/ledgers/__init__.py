"""
Nourish - Ledgers.

User-scoped data access for each entity type. Every function takes the
store and the owning user id explicitly.
"""

from nourish.ledgers import meals, pantry, preferences, profiles, shopping, water, weight

__all__ = [
    "meals",
    "pantry",
    "preferences",
    "profiles",
    "shopping",
    "water",
    "weight",
]

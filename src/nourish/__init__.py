"""
Nourish - AI nutrition assistant core.

Pieces:
- Ledgers: user-scoped meals, weight, water, preferences, pantry, shopping
- Context: per-turn briefing of the user's nutrition state for the model
- Tools: the fixed catalog the model may call, validated and ownership-scoped
- Agent: the bounded model/tool loop for one user turn
"""

__version__ = "1.0.0"

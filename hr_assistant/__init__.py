"""
HR Assistant dialogue engine.

This package provides the decision pipeline behind the HR chat assistant:
- Pattern, knowledge-base and tenant-trained intent recognition
- Entity extraction and sentiment scoring
- Context-aware routing to actions, templates or a generative fallback
- Conversation state and rolling analytics
"""

__version__ = "1.0.0"

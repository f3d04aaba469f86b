# Services package
from .ai_engine import AIEngine

__all__ = ['AIEngine']

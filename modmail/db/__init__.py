from .core import CoreDB
from .repository import ModmailRepository

__all__ = ["CoreDB", "ModmailRepository"]

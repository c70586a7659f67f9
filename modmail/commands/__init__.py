from ..abc import CompositeMetaClass
from .admin import AdminCommands
from .threads import ThreadCommands


class ModmailCommands(AdminCommands, ThreadCommands, metaclass=CompositeMetaClass):
    """Subclass all command classes"""

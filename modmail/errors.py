"""Errors raised by the modmail core. Plain exceptions so the core has no Red dependency."""


class ModmailError(Exception):
    """Base exception for Modmail errors."""
    pass

class GatewayError(ModmailError):
    """Raised when a Discord call made on behalf of the opener fails."""
    pass

class RepositoryError(ModmailError):
    """Raised when a database operation fails."""
    pass

class ThreadConflictError(RepositoryError):
    """Raised when an open thread already exists for the guild and user."""
    def __init__(self, guild_id: int, user_id: int):
        self.guild_id = guild_id
        self.user_id = user_id
        super().__init__(f"An open thread already exists for user {user_id} in guild {guild_id}")

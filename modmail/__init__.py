"""Modmail Cog"""

__version__ = "1.0.0"
__author__ = "Kirin"
__license__ = "MIT"

__red_end_user_data_statement__ = (
    "This cog stores the IDs of users who open modmail threads, the staff who open and close "
    "them, and staff who subscribe to new thread alerts. Message content is not stored."
)


async def setup(bot):
    # Imported here so the thread opening core can be used without Red installed
    from .modmail import Modmail

    await bot.add_cog(Modmail(bot))

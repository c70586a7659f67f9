DEFAULT_GLOBAL = {
    "log_channel_id": None,  # Text channel that receives deflection notices
    "dm_guild_id": None,  # Guild that direct messages to the bot are routed to
}

DEFAULT_GUILD = {
    "modmail_channel_id": None,  # Forum or text channel threads are opened in
    "alert_role_id": None,  # Role pinged when a user opens a thread (overrides alert subscribers)
}

# Seconds the tag dropdown waits for a selection
TAG_PROMPT_TIMEOUT = 30

TAG_SELECT_CUSTOM_ID = "user-tag-selector"

# Discord caps thread names at 100 characters
THREAD_TITLE_LIMIT = 97

SUMMARY_EMBED_COLOR = 0x23272A  # "Not quite black"
FAREWELL_EMBED_COLOR = 0x2B2D31

ROLES_FIELD_LIMIT = 1024

DEFAULT_LOCALE = "en-US"

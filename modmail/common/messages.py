"""
English source strings for every user facing message, by key.

The strings are the msgids of the ``locales/*.po`` catalogs.
"""


def N_(text: str) -> str:
    """Mark a string for extraction without translating it yet"""
    return text


MESSAGES = {
    "common.errors.thread_creation": N_(
        "Something went wrong while creating the thread. Please contact a staff member."
    ),
    "common.errors.no_member": N_("That user is not a member of this server."),
    "common.errors.thread_exists": N_("That user already has an open modmail thread."),
    "common.errors.no_tag_selected": N_(
        "**Error:** You did not select a category from the dropdown, so your message was not sent. "
        "Send a new message to continue using Modmail."
    ),
    "common.success.opened_thread": N_("Modmail thread opened."),
    "thread.start.embed.fields.account_created": N_("Account created"),
    "thread.start.embed.fields.joined_server": N_("Joined server"),
    "thread.start.embed.fields.past_modmails": N_("Past modmails"),
    "thread.start.embed.fields.opened_by": N_("Opened by"),
    "thread.start.embed.fields.roles": N_("Roles"),
    "tag_prompt.content": N_("Please select one of the options below so that we can best assist you."),
    "tag_prompt.timed_out": N_("Timed out..."),
    "tag_prompt.not_yours": N_("This menu isn't for you."),
    "deflection.log.title": N_("User Redirected to Support"),
    "deflection.log.fields.option": N_("Dropdown Option"),
    "deflection.log.fields.user": N_("User"),
    "alerts.role": N_("Alert: {role}"),
    "alerts.users": N_("Alerts: {users}"),
}

"""English message catalog.

Plain constants are sent as-is; functions returning HTML escape every
piece of user- or platform-provided text they interpolate.
"""

from __future__ import annotations

from collections.abc import Sequence

from ytd_bot.utils.text import escape_html

# ---------------------------------------------------------------------------
# Greeting / help
# ---------------------------------------------------------------------------

_ADMIN_COMMANDS = (
    "🔐 <b>Admin Commands:</b>\n"
    "/stats - View bot statistics\n"
    "/feedback_list - See pending feedback\n"
    "/reply [ID] [message] - Reply to feedback\n"
    "/broadcast - Send message to all users"
)


def welcome(is_admin: bool) -> str:
    text = (
        "Welcome! I can help you download music and videos from YouTube.\n\n"
        "Just send me a song name or artist to search, or use these commands:\n"
        "/search - Search for videos\n"
        "/feedback - Send feedback or report issues\n"
        "/help - Show help information"
    )
    if is_admin:
        text += "\n\n" + _ADMIN_COMMANDS
    return text


def help_text(is_admin: bool) -> str:
    text = (
        "🎵 <b>YouTube Downloader Bot Help</b> 🎵\n\n"
        "<b>User Commands:</b>\n"
        "• Simply type any song or video name to search\n"
        "• /search - Search for videos\n"
        "• /feedback - Send feedback or report issues\n"
        "• /cancel - Cancel current operation\n\n"
        "<b>How to use:</b>\n"
        "1. Search for a video by name\n"
        "2. Select from search results\n"
        "3. Choose audio or video format\n"
        "4. For videos, select quality\n"
        "5. Wait for download to complete\n\n"
        "If you encounter any issues, use /feedback to report them!"
    )
    if is_admin:
        text += (
            "\n\n🔐 <b>Admin Commands:</b>\n"
            "• /stats - View bot usage statistics\n"
            "• /feedback_list - See pending user feedback\n"
            "• /reply [ID] [message] - Reply to user feedback\n"
            "• /broadcast - Send announcement to all users\n\n"
            "<b>Reply format:</b>\n"
            "/reply 5 Thanks for your feedback!"
        )
    return text


# ---------------------------------------------------------------------------
# Selection flow
# ---------------------------------------------------------------------------

SEARCH_PROMPT = "Please enter the name of the song or video you want to search for:"
NO_RESULTS = "No results found. Please try a different search term."
SEARCH_UNAVAILABLE = "Unable to search YouTube at the moment. Please try again later."
SELECT_RESULT = "Please select a video from these search results:"
INVALID_SELECTION = "Invalid selection. Please try again."
SELECTION_EXPIRED = "Your selection has expired. Please search again."
NO_FORMATS = "No video formats available. Please try another video."
SELECT_QUALITY = "Select video quality:"
BEST_QUALITY_LABEL = "Best Quality (Auto)"
AUDIO_LABEL = "🎵 Audio"
VIDEO_LABEL = "🎬 Video"
CONTENT_UNAVAILABLE = "This content is unavailable. Please try another video."
SIZE_EXCEEDED = (
    "The file is still too large to send after compression. "
    "Please try a shorter video or a lower quality."
)
PROCESSING_FAILED = "Could not process this video. Please try another video or quality."
DELIVERY_FAILED = "Could not send the file. It might be too large for Telegram (max 50MB)."
GENERIC_FAILURE = "Something went wrong. Please try again later."
CANCELLED = "Current operation canceled. You can start a new search or use other commands."


def searching(query: str) -> str:
    return f'Searching for "{query}"...'


def format_prompt(title: str) -> str:
    return f"Selected: {title}\n\nChoose a format:"


def fetching_qualities(title: str) -> str:
    return f"Getting available video qualities for: {title}"


def processing_audio(title: str) -> str:
    return f"Processing your request...\nGetting audio for: {title}"


def processing_video(label: str, title: str) -> str:
    return f"Processing your request...\nDownloading {label} video for: {title}"


def still_working(elapsed_seconds: int) -> str:
    return f"⏳ Still working... ({elapsed_seconds}s elapsed)"


def delivered(title: str) -> str:
    return f"✅ Done: {title}"


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------

FEEDBACK_PROMPT = (
    "Please type your feedback, suggestion, or issue report.\n"
    "Type /cancel to cancel."
)
FEEDBACK_TEXT_ONLY = "Please send a text message for your feedback."
FEEDBACK_THANKS = (
    "Thank you for your feedback! The administrator will review it soon.\n"
    "You can continue using the bot normally now."
)
FEEDBACK_SAVE_FAILED = "Error saving your feedback. Please try again later."


def feedback_notification(user_label: str, user_id: int, text: str) -> str:
    return (
        "📩 <b>New Feedback Received</b>\n"
        f"From: {escape_html(user_label)} (ID: {user_id})\n\n"
        f"{escape_html(text)}\n\n"
        "Use /feedback_list to see all pending feedback."
    )


def admin_reply(original: str, reply: str) -> str:
    return (
        "📬 <b>Reply from admin regarding your feedback:</b>\n\n"
        f'Your message: "{escape_html(original)}"\n\n'
        f'Admin\'s reply: "{escape_html(reply)}"\n\n'
        "Use /feedback to send another message if needed."
    )


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------

STATS_FAILED = "Error retrieving statistics"
FEEDBACK_LIST_EMPTY = "No pending feedback messages."
REPLY_USAGE = (
    "To reply to feedback, use the format:\n"
    "/reply [ID] [your message]\n\n"
    "Example: /reply 5 Thanks for your feedback!"
)
REPLY_FAILED = "Error sending reply. Please try again."
BROADCAST_PROMPT = (
    "📣 <b>Broadcast Message</b>\n\n"
    "Please type the message you want to broadcast to all users.\n"
    "The message will be sent to everyone who has used the bot.\n\n"
    "Type /cancel to cancel the broadcast."
)
BROADCAST_TEXT_ONLY = "Please send a text message for broadcast."
BROADCAST_STARTED = "⏳ <b>Broadcasting message to all users...</b>"


def stats(
    total_users: int,
    active_today: int,
    active_week: int,
    pending_feedback: int,
    top_searches: Sequence[tuple[str, int]],
) -> str:
    if top_searches:
        searches = "\n".join(
            f'"{escape_html(query)}" ({count})' for query, count in top_searches
        )
    else:
        searches = "No searches yet"
    return (
        "📊 <b>Bot Statistics:</b>\n\n"
        f"Total Users: {total_users}\n"
        f"Active Today: {active_today}\n"
        f"Active This Week: {active_week}\n\n"
        f"Pending Feedback: {pending_feedback}\n\n"
        f"<b>Top Searches:</b>\n{searches}"
    )


def feedback_entry(
    feedback_id: int,
    user_label: str,
    user_id: int,
    timestamp: str,
    text: str,
) -> str:
    return (
        f"📩 <b>Feedback #{feedback_id}</b>\n"
        f"From: {escape_html(user_label)} (ID: {user_id})\n"
        f"Time: {escape_html(timestamp)}\n\n"
        f"{escape_html(text)}\n\n"
        f"To reply, use: /reply {feedback_id} YOUR_REPLY"
    )


def feedback_not_found(feedback_id: int) -> str:
    return f"Feedback #{feedback_id} not found."


def reply_sent(user_id: int, feedback_id: int) -> str:
    return f"Reply sent to user {user_id} for feedback #{feedback_id}"


def announcement(text: str) -> str:
    return f"📢 <b>Announcement from Bot Admin:</b>\n\n{escape_html(text)}"


def broadcast_complete(sent: int, failed: int) -> str:
    return (
        "✅ <b>Broadcast Complete</b>\n\n"
        f"Message sent to {sent} users\n"
        f"Failed to send to {failed} users"
    )


def user_label(user_id: int, username: str | None, first_name: str | None) -> str:
    """Render a user as ``@name``, their first name, or ``User <id>``."""
    if username:
        return f"@{username}"
    return first_name or f"User {user_id}"

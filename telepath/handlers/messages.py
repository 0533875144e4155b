"""Fixed user-facing texts (legacy Markdown)."""

from telepath import __version__

WELCOME_BACK = """🤖 *Welcome back to Telepath!*

I'm your AI-powered short link generator. Simply send me any URL and I'll create an intelligent, memorable short link for you.

*Commands:*
• Send any URL to create a short link
• /links - Browse and manage your links
• /settings - Manage your preferences
• /help - Get help and tips

Ready to create some smart short links? 🚀"""

HELP = """🆘 *Help - How to use Telepath*

*Basic Usage:*
• Send any URL to create a short link
• I'll suggest a slug based on the content
• Use the buttons to Confirm, Edit, or Reject suggestions

*Commands:*
• /start - Welcome message or first-time setup
• /help - Show this help message
• /about - About this bot
• /links - Manage your created links
• /stats - Totals for your links
• /search <text> - Find one of your links
• /settings - Configure preferences

*Tips:*
• Make sure URLs include http:// or https://
• Custom slugs may use letters, numbers, hyphens and underscores
• Already shortened URLs won't be processed"""

ABOUT = f"""ℹ️ *About Telepath - AI Short Links*

*Version:* {__version__}

Telepath turns long URLs into meaningful short links. Instead of random characters like "bit.ly/x7k2m", you get links like "dub.sh/ai-tutorial".

*Powered by:*
• *Claude* for slug suggestions
• *Dub* for short link creation
• *SQLite* for your preferences and link history

URLs are sent to the AI provider only to suggest a slug. Links are created in your own Dub workspace."""

NO_URL = (
    "🔗 Send me a URL (starting with http:// or https://) and I'll "
    "create a short link for it."
)

NON_TEXT = "📎 Please send me a URL as text to create a short link!"

SETUP_REQUIRED = "⚙️ Please complete setup first using /start to configure your preferences."

SETUP_IN_PROGRESS = (
    "⚙️ Please complete setup first. Use the buttons above to continue, "
    "or /start to begin again."
)

SESSION_EXPIRED = "Session expired. Please send a new URL."

BUTTON_EXPIRED = "This button has expired. Please start again."

FALLBACK_APOLOGY = "❌ An unexpected error occurred. Please try again or contact support."

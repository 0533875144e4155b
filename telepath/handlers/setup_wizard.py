"""First-run setup wizard.

Welcome → DomainSelection → SlugStyle → AutoConfirm → ShowReasoning →
Completed. Each choice is saved immediately and advances one step;
Back/Skip move without saving. Reaching Completed (or skipping the whole
wizard) marks setup as done and clears the session; Cancel clears the
session and leaves setup incomplete.
"""

import logging

from telepath.db.models import SlugStyle, UserPreferences
from telepath.handlers import messages
from telepath.handlers.actions import (
    SetupCancel,
    SetupNext,
    SetupSetAutoConfirm,
    SetupSetDomain,
    SetupSetReasoning,
    SetupSetStyle,
    SetupSkip,
    fits,
)
from telepath.handlers.context import BotContext
from telepath.handlers.view import (
    AnswerCallback,
    Button,
    EditMessage,
    Keyboard,
    Reply,
    Response,
    md,
    yes_no,
)
from telepath.services.preferences_service import describe_slug_style
from telepath.services.session_manager import InSetupWizard, SetupStep

logger = logging.getLogger(__name__)

MAX_DOMAIN_CHOICES = 8

STYLE_LABELS: dict[SlugStyle, str] = {
    SlugStyle.intelligent: "🧠 Intelligent (Recommended)",
    SlugStyle.short: "⚡ Short & Sweet",
    SlugStyle.descriptive: "📝 Descriptive",
    SlugStyle.technical: "🔧 Technical",
}

WELCOME_TEXT = """🚀 *Welcome to Telepath Setup!*

Let's configure your preferences for the best short link experience.

This will only take a minute and you can change these settings anytime with /settings.

*What we'll set up:*
• 🌐 Default domain preference
• 🎨 Slug generation style
• ⚡ Auto-confirmation settings
• 💭 Display preferences

Ready to get started?"""


def render_preferences(prefs: UserPreferences, default_domain: str) -> str:
    """Four-line summary of a user's preferences."""
    return (
        f"🌐 *Default Domain:* {md(prefs.default_domain or default_domain)}\n"
        f"🎨 *Slug Style:* {prefs.slug_style.value}\n"
        f"⚡ *Auto-Confirm:* {yes_no(prefs.auto_confirm)}\n"
        f"💭 *Show Reasoning:* {yes_no(prefs.show_reasoning)}"
    )


def _cancel_button() -> Button:
    return Button("❌ Cancel Setup", SetupCancel())


class SetupWizardController:
    """Drives the setup wizard for one user at a time."""

    def __init__(self, ctx: BotContext) -> None:
        self._ctx = ctx

    async def start(self, user_id: int) -> list[Response]:
        """Begin the wizard at Welcome, creating default preferences if needed."""
        await self._ctx.preferences.ensure(user_id)
        self._ctx.sessions.set_state(user_id, InSetupWizard(SetupStep.welcome))
        logger.info("Setup wizard started for user %s", user_id)
        return [Reply(WELCOME_TEXT, self._welcome_keyboard())]

    async def go_to(self, user_id: int, step: SetupStep) -> list[Response]:
        """Show a step (Back/Skip/Next all land here)."""
        if not self._in_wizard(user_id):
            return [AnswerCallback(messages.BUTTON_EXPIRED)]
        return await self._show(user_id, step)

    async def set_domain(self, user_id: int, domain: str) -> list[Response]:
        return await self._commit(user_id, {"default_domain": domain}, SetupStep.slug_style)

    async def set_style(self, user_id: int, style: SlugStyle) -> list[Response]:
        return await self._commit(
            user_id, {"preferred_slug_style": style}, SetupStep.auto_confirm
        )

    async def set_auto_confirm(self, user_id: int, value: bool) -> list[Response]:
        return await self._commit(user_id, {"auto_confirm": value}, SetupStep.show_reasoning)

    async def set_reasoning(self, user_id: int, value: bool) -> list[Response]:
        return await self._commit(user_id, {"show_reasoning": value}, SetupStep.completed)

    async def skip(self, user_id: int) -> list[Response]:
        """Finish setup with whatever values are already stored."""
        await self._ctx.preferences.ensure(user_id)
        prefs = await self._ctx.preferences.mark_setup_completed(user_id)
        self._ctx.sessions.clear(user_id)
        logger.info("Setup skipped for user %s", user_id)
        text = (
            "⏭️ *Setup Skipped*\n\n"
            "You can configure your preferences anytime with /settings.\n\n"
            "*Settings Applied:*\n"
            f"{render_preferences(prefs, self._ctx.default_domain)}\n\n"
            "Send me a URL to create your first short link!"
        )
        return [AnswerCallback(), EditMessage(text)]

    async def cancel(self, user_id: int) -> list[Response]:
        self._ctx.sessions.clear(user_id)
        logger.info("Setup cancelled for user %s", user_id)
        return [
            AnswerCallback("Setup cancelled"),
            EditMessage("❌ Setup cancelled. You can start setup again with /start."),
        ]

    # ── Steps ──────────────────────────────────────────────────────────

    async def _commit(
        self, user_id: int, patch: dict, next_step: SetupStep
    ) -> list[Response]:
        if not self._in_wizard(user_id):
            return [AnswerCallback(messages.BUTTON_EXPIRED)]
        await self._ctx.preferences.update(user_id, patch)
        return await self._show(user_id, next_step)

    async def _show(self, user_id: int, step: SetupStep) -> list[Response]:
        if step is SetupStep.completed:
            return await self._complete(user_id)
        self._ctx.sessions.set_state(user_id, InSetupWizard(step))
        if step is SetupStep.welcome:
            text, keyboard = WELCOME_TEXT, self._welcome_keyboard()
        elif step is SetupStep.domain_selection:
            text, keyboard = await self._domain_step(user_id)
        elif step is SetupStep.slug_style:
            text, keyboard = self._style_step()
        elif step is SetupStep.auto_confirm:
            text, keyboard = self._auto_confirm_step()
        else:
            text, keyboard = self._reasoning_step()
        return [AnswerCallback(), EditMessage(text, keyboard)]

    async def _complete(self, user_id: int) -> list[Response]:
        prefs = await self._ctx.preferences.mark_setup_completed(user_id)
        self._ctx.sessions.clear(user_id)
        logger.info("Setup completed for user %s", user_id)
        text = (
            "🎉 *Setup Complete!*\n\n"
            "Telepath is now configured and ready to create intelligent short links!\n\n"
            "*Your Settings:*\n"
            f"{render_preferences(prefs, self._ctx.default_domain)}\n\n"
            "*Ready to try it?* Send me any URL to create your first smart short link!\n\n"
            "You can change these settings anytime with /settings."
        )
        return [AnswerCallback("Setup complete"), EditMessage(text)]

    async def _domain_step(self, user_id: int) -> tuple[str, Keyboard]:
        verified = await self._ctx.provider.list_verified_domains()
        self._ctx.sessions.set_available_domains(user_id, verified)

        default = self._ctx.default_domain
        keyboard: Keyboard = [
            [Button(f"🔗 {default} (Default)", SetupSetDomain(domain=default))]
        ]
        choices = [
            d for d in verified if d != default and fits(SetupSetDomain(domain=d))
        ]
        for domain in choices[:MAX_DOMAIN_CHOICES]:
            keyboard.append([Button(f"🌐 {domain}", SetupSetDomain(domain=domain))])
        keyboard.append(self._nav_row(SetupStep.domain_selection))
        keyboard.append([_cancel_button()])

        text = (
            "🌐 *Choose Your Default Domain*\n\n"
            "This will be your preferred domain for creating short links. "
            "You can always change this later or pick a different domain when "
            "creating links."
        )
        return text, keyboard

    def _style_step(self) -> tuple[str, Keyboard]:
        keyboard: Keyboard = [
            [Button(label, SetupSetStyle(style=style))]
            for style, label in STYLE_LABELS.items()
        ]
        keyboard.append(self._nav_row(SetupStep.slug_style))
        keyboard.append([_cancel_button()])

        descriptions = "\n".join(
            f"• *{style.value}*: {describe_slug_style(style)}" for style in SlugStyle
        )
        text = (
            "🎨 *Choose Your Slug Style*\n\n"
            "How would you like your short link slugs generated?\n\n"
            f"{descriptions}"
        )
        return text, keyboard

    def _auto_confirm_step(self) -> tuple[str, Keyboard]:
        keyboard: Keyboard = [
            [Button("🤔 Review First (Recommended)", SetupSetAutoConfirm(value=False))],
            [Button("⚡ Auto-Confirm", SetupSetAutoConfirm(value=True))],
            self._nav_row(SetupStep.auto_confirm),
            [_cancel_button()],
        ]
        text = (
            "⚡ *Auto-Confirmation*\n\n"
            "Would you like to automatically confirm suggestions, or review them first?\n\n"
            "• *Review First*: See suggestions with Confirm/Edit/Reject buttons\n"
            "• *Auto-Confirm*: Create links immediately with the suggested slug"
        )
        return text, keyboard

    def _reasoning_step(self) -> tuple[str, Keyboard]:
        keyboard: Keyboard = [
            [Button("💭 Show Reasoning (Recommended)", SetupSetReasoning(value=True))],
            [Button("🎯 Hide Reasoning", SetupSetReasoning(value=False))],
            self._nav_row(SetupStep.show_reasoning, forward_label="✅ Finish Setup"),
            [_cancel_button()],
        ]
        text = (
            "💭 *Reasoning Display*\n\n"
            "Would you like to see why each slug was suggested?\n\n"
            "• *Show Reasoning*: See the explanation for each slug\n"
            "• *Hide Reasoning*: Just see the suggested slug"
        )
        return text, keyboard

    @staticmethod
    def _welcome_keyboard() -> Keyboard:
        return [
            [
                Button("▶️ Start Setup", SetupNext(step=SetupStep.domain_selection)),
                Button("⏭️ Skip Setup", SetupSkip()),
            ],
            [_cancel_button()],
        ]

    @staticmethod
    def _nav_row(step: SetupStep, forward_label: str = "⏭️ Skip") -> list[Button]:
        return [
            Button("⬅️ Back", SetupNext(step=step.previous())),
            Button(forward_label, SetupNext(step=step.next())),
        ]

    def _in_wizard(self, user_id: int) -> bool:
        return isinstance(self._ctx.sessions.get_state(user_id), InSetupWizard)

"""The /settings menu: view and change preferences after setup."""

import logging

from telepath.db.models import SlugStyle
from telepath.handlers.actions import (
    SettingsClose,
    SettingsDomain,
    SettingsReset,
    SettingsSetDomain,
    SettingsSetStyle,
    SettingsStyle,
    SettingsToggleAutoConfirm,
    SettingsToggleReasoning,
    fits,
)
from telepath.handlers.context import BotContext
from telepath.handlers.setup_wizard import MAX_DOMAIN_CHOICES, STYLE_LABELS, render_preferences
from telepath.handlers.view import (
    AnswerCallback,
    Button,
    EditMessage,
    Keyboard,
    Reply,
    Response,
)
from telepath.services.preferences_service import describe_slug_style

logger = logging.getLogger(__name__)


def _menu_keyboard() -> Keyboard:
    return [
        [Button("🌐 Change Domain", SettingsDomain())],
        [Button("🎨 Change Slug Style", SettingsStyle())],
        [Button("⚡ Toggle Auto-Confirm", SettingsToggleAutoConfirm())],
        [Button("💭 Toggle Reasoning", SettingsToggleReasoning())],
        [Button("🔄 Reset to Defaults", SettingsReset())],
        [Button("❌ Close", SettingsClose())],
    ]


class SettingsController:
    def __init__(self, ctx: BotContext) -> None:
        self._ctx = ctx

    async def show(self, user_id: int, as_edit: bool = False, notice: str | None = None) -> list[Response]:
        prefs = await self._ctx.preferences.ensure(user_id)
        text = (
            "⚙️ *Your Current Settings*\n\n"
            f"{render_preferences(prefs, self._ctx.default_domain)}"
        )
        if as_edit:
            return [AnswerCallback(notice), EditMessage(text, _menu_keyboard())]
        return [Reply(text, _menu_keyboard())]

    async def choose_domain(self, user_id: int) -> list[Response]:
        verified = await self._ctx.provider.list_verified_domains()
        self._ctx.sessions.set_available_domains(user_id, verified)

        default = self._ctx.default_domain
        keyboard: Keyboard = [
            [Button(f"🔗 {default} (Default)", SettingsSetDomain(domain=default))]
        ]
        choices = [
            d for d in verified if d != default and fits(SettingsSetDomain(domain=d))
        ]
        for domain in choices[:MAX_DOMAIN_CHOICES]:
            keyboard.append([Button(f"🌐 {domain}", SettingsSetDomain(domain=domain))])
        keyboard.append([Button("❌ Close", SettingsClose())])
        return [
            AnswerCallback(),
            EditMessage("🌐 *Choose Your Default Domain*", keyboard),
        ]

    async def choose_style(self, user_id: int) -> list[Response]:
        prefs = await self._ctx.preferences.ensure(user_id)
        keyboard: Keyboard = [
            [Button(("✅ " if style is prefs.slug_style else "") + label, SettingsSetStyle(style=style))]
            for style, label in STYLE_LABELS.items()
        ]
        keyboard.append([Button("❌ Close", SettingsClose())])
        descriptions = "\n".join(
            f"• *{style.value}*: {describe_slug_style(style)}" for style in SlugStyle
        )
        return [
            AnswerCallback(),
            EditMessage(f"🎨 *Choose Your Slug Style*\n\n{descriptions}", keyboard),
        ]

    async def set_domain(self, user_id: int, domain: str) -> list[Response]:
        await self._ctx.preferences.ensure(user_id)
        await self._ctx.preferences.update(user_id, {"default_domain": domain})
        return await self.show(user_id, as_edit=True, notice=f"Default domain set to {domain}")

    async def set_style(self, user_id: int, style: SlugStyle) -> list[Response]:
        await self._ctx.preferences.ensure(user_id)
        await self._ctx.preferences.update(user_id, {"preferred_slug_style": style})
        return await self.show(user_id, as_edit=True, notice=f"Slug style set to {style.value}")

    async def toggle_auto_confirm(self, user_id: int) -> list[Response]:
        prefs = await self._ctx.preferences.ensure(user_id)
        await self._ctx.preferences.update(user_id, {"auto_confirm": not prefs.auto_confirm})
        state = "on" if not prefs.auto_confirm else "off"
        return await self.show(user_id, as_edit=True, notice=f"Auto-confirm {state}")

    async def toggle_reasoning(self, user_id: int) -> list[Response]:
        prefs = await self._ctx.preferences.ensure(user_id)
        await self._ctx.preferences.update(user_id, {"show_reasoning": not prefs.show_reasoning})
        state = "shown" if not prefs.show_reasoning else "hidden"
        return await self.show(user_id, as_edit=True, notice=f"Reasoning {state}")

    async def reset(self, user_id: int) -> list[Response]:
        await self._ctx.preferences.reset(user_id, keep_setup_completed=True)
        logger.info("Settings reset to defaults for user %s", user_id)
        return await self.show(user_id, as_edit=True, notice="Settings reset to defaults")

    async def close(self) -> list[Response]:
        return [AnswerCallback(), EditMessage("⚙️ Settings closed. Use /settings to open them again.")]

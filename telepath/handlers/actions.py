"""Typed button payloads.

Every inline button carries one of the actions below, serialized as a
compact JSON object tagged by ``action``. Decoding is closed: anything
that isn't a known action is rejected with CallbackDecodeError.

Example:
    data = encode(LinksPage(page=2))   # '{"action":"links_page","page":2}'
    decode(data)                       # LinksPage(action='links_page', page=2)
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from telepath.db.models import SlugStyle
from telepath.errors import CallbackDecodeError
from telepath.services.session_manager import SetupStep

# Telegram's callback_data limit
MAX_CALLBACK_BYTES = 64


class _Action(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# Suggestion decisions

class Confirm(_Action):
    action: Literal["confirm"] = "confirm"


class Edit(_Action):
    action: Literal["edit"] = "edit"


class Reject(_Action):
    action: Literal["reject"] = "reject"


class SelectDomain(_Action):
    action: Literal["select_domain"] = "select_domain"
    data: str


# Link management

class LinksPage(_Action):
    action: Literal["links_page"] = "links_page"
    page: int = 1


class LinkDetails(_Action):
    action: Literal["link_details"] = "link_details"
    link_id: str = Field(alias="linkId")


class LinkEdit(_Action):
    action: Literal["link_edit"] = "link_edit"
    link_id: str = Field(alias="linkId")


class LinkDelete(_Action):
    action: Literal["link_delete"] = "link_delete"
    link_id: str = Field(alias="linkId")


class LinkDeleteConfirm(_Action):
    action: Literal["link_delete_confirm"] = "link_delete_confirm"
    link_id: str = Field(alias="linkId")


class CloseLinks(_Action):
    action: Literal["close_links"] = "close_links"


# Setup wizard

class SetupNext(_Action):
    action: Literal["setup_next"] = "setup_next"
    step: SetupStep


class SetupSetDomain(_Action):
    action: Literal["setup_set_domain"] = "setup_set_domain"
    domain: str


class SetupSetStyle(_Action):
    action: Literal["setup_set_style"] = "setup_set_style"
    style: SlugStyle


class SetupSetAutoConfirm(_Action):
    action: Literal["setup_set_auto_confirm"] = "setup_set_auto_confirm"
    value: bool


class SetupSetReasoning(_Action):
    action: Literal["setup_set_reasoning"] = "setup_set_reasoning"
    value: bool


class SetupSkip(_Action):
    action: Literal["setup_skip"] = "setup_skip"


class SetupCancel(_Action):
    action: Literal["setup_cancel"] = "setup_cancel"


# Settings menu

class SettingsDomain(_Action):
    action: Literal["settings_domain"] = "settings_domain"


class SettingsStyle(_Action):
    action: Literal["settings_style"] = "settings_style"


class SettingsSetDomain(_Action):
    action: Literal["settings_set_domain"] = "settings_set_domain"
    domain: str


class SettingsSetStyle(_Action):
    action: Literal["settings_set_style"] = "settings_set_style"
    style: SlugStyle


class SettingsToggleAutoConfirm(_Action):
    action: Literal["settings_toggle_auto_confirm"] = "settings_toggle_auto_confirm"


class SettingsToggleReasoning(_Action):
    action: Literal["settings_toggle_reasoning"] = "settings_toggle_reasoning"


class SettingsReset(_Action):
    action: Literal["settings_reset"] = "settings_reset"


class SettingsClose(_Action):
    action: Literal["settings_close"] = "settings_close"


CallbackAction = Annotated[
    Union[
        Confirm,
        Edit,
        Reject,
        SelectDomain,
        LinksPage,
        LinkDetails,
        LinkEdit,
        LinkDelete,
        LinkDeleteConfirm,
        CloseLinks,
        SetupNext,
        SetupSetDomain,
        SetupSetStyle,
        SetupSetAutoConfirm,
        SetupSetReasoning,
        SetupSkip,
        SetupCancel,
        SettingsDomain,
        SettingsStyle,
        SettingsSetDomain,
        SettingsSetStyle,
        SettingsToggleAutoConfirm,
        SettingsToggleReasoning,
        SettingsReset,
        SettingsClose,
    ],
    Field(discriminator="action"),
]

_adapter: TypeAdapter[CallbackAction] = TypeAdapter(CallbackAction)


def encode(action: _Action) -> str:
    """Serialize an action to compact JSON for a button.

    Raises:
        ValueError: If the payload exceeds Telegram's 64-byte limit.
    """
    data = action.model_dump_json(by_alias=True)
    if len(data.encode("utf-8")) > MAX_CALLBACK_BYTES:
        raise ValueError(f"Callback payload too long ({len(data)} bytes): {data}")
    return data


def fits(action: _Action) -> bool:
    """Whether the action's payload fits in a Telegram button."""
    return len(action.model_dump_json(by_alias=True).encode("utf-8")) <= MAX_CALLBACK_BYTES


def decode(data: str) -> CallbackAction:
    """Parse button data back into an action.

    Raises:
        CallbackDecodeError: Malformed JSON or an unknown/invalid action.
    """
    try:
        return _adapter.validate_json(data)
    except PydanticValidationError as e:
        raise CallbackDecodeError(f"Undecodable callback payload {data!r}: {e}") from e

# -*- coding: utf-8 -*-
"""
src/nativebridge/core/registry.py

Handler registry: maps message-type tags to the functions that answer them.

There are two disjoint kinds of handlers:

- function handlers, `(id, payload) -> ResponseEnvelope` (sync or async),
  which answer right away;
- screen handlers, `(id, payload) -> bool`, which open a screen through the
  shared ScreenController and return True to say "the response comes later".

Both maps are built once per bridge session and exposed read-only.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

from .envelope import MessageType, ResponseEnvelope
from .screens import ScreenController

FunctionHandler = Callable[[str, Any], Union[ResponseEnvelope, Awaitable[ResponseEnvelope]]]
ScreenHandler = Callable[[str, Any], bool]
HandlerGroup = Mapping[Union[str, MessageType], Callable]

# --- Screen identities ---
CAMERA_SCREEN = "camera"
OCR_SCREEN = "ocr"


@dataclass(frozen=True)
class ScreenConfig:
    """Declares which screen a message type opens and with which default options."""
    screen: str
    default_options: Mapping[str, Any] = field(default_factory=dict)


# Adding a screen only needs an entry here and a presenter for its identity.
SCREENS: Mapping[str, ScreenConfig] = MappingProxyType({
    MessageType.CAMERA_SHOW.value: ScreenConfig(
        CAMERA_SCREEN, MappingProxyType({"mode": "photo", "quality": "high"})
    ),
    MessageType.OCR_SCAN_ID_CARD.value: ScreenConfig(
        OCR_SCREEN, MappingProxyType({"documentType": "ID_CARD", "includeImage": True})
    ),
    MessageType.OCR_SCAN_DRIVER_LICENSE.value: ScreenConfig(
        OCR_SCREEN, MappingProxyType({"documentType": "DRIVER_LICENSE", "includeImage": True})
    ),
})


def message_key(message_type: Union[str, MessageType]) -> str:
    return message_type.value if isinstance(message_type, MessageType) else str(message_type)


def combine_handlers(*groups: HandlerGroup) -> Mapping[str, Callable]:
    """
    Merges handler groups into one flat, read-only map.

    Groups are applied in argument order, so on a key collision the later
    group wins.
    """
    merged: Dict[str, Callable] = {}
    for group in groups:
        for message_type, handler in group.items():
            merged[message_key(message_type)] = handler
    return MappingProxyType(merged)


def _make_screen_handler(controller: ScreenController, config: ScreenConfig) -> ScreenHandler:
    def handler(request_id: str, payload: Any = None) -> bool:
        # Defaults first, then whatever the caller supplied.
        options = dict(config.default_options)
        if isinstance(payload, dict):
            options.update(payload)
        return controller.show(config.screen, request_id, options)

    return handler


def create_screen_handlers(
    controller: ScreenController,
    screens: Mapping[str, ScreenConfig] = SCREENS,
) -> Mapping[str, ScreenHandler]:
    """Builds one screen handler per configured message type, all sharing `controller`."""
    return MappingProxyType({
        message_key(message_type): _make_screen_handler(controller, config)
        for message_type, config in screens.items()
    })


@dataclass(frozen=True)
class HandlerRegistry:
    """The two handler maps of one bridge session."""
    function_handlers: Mapping[str, FunctionHandler]
    screen_handlers: Mapping[str, ScreenHandler]

    def screen_handler(self, message_type: str) -> Optional[ScreenHandler]:
        return self.screen_handlers.get(message_type)

    def function_handler(self, message_type: str) -> Optional[FunctionHandler]:
        return self.function_handlers.get(message_type)

    @property
    def message_types(self) -> frozenset:
        return frozenset(self.function_handlers) | frozenset(self.screen_handlers)

# -*- coding: utf-8 -*-
"""Dialog handlers (ALERT)."""

import logging
from typing import Any, Dict

from ..core.envelope import MessageType, ResponseEnvelope, success_response
from ..core.exceptions import CapabilityError
from ..providers.base import DialogProvider

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "알림"
DEFAULT_BUTTONS = [{"text": "확인"}]


def create_dialog_handlers(provider: DialogProvider) -> Dict[str, Any]:

    async def alert(request_id: str, payload: Any) -> ResponseEnvelope:
        if not isinstance(payload, dict) or not payload.get("message"):
            raise CapabilityError("alert requires a message")

        buttons = payload.get("buttons") or DEFAULT_BUTTONS
        if not isinstance(buttons, list):
            raise CapabilityError("alert buttons must be a list")

        index = await provider.alert(payload.get("title") or DEFAULT_TITLE, str(payload["message"]), buttons)
        button = buttons[index] if 0 <= index < len(buttons) else {}
        return success_response(request_id, {
            "buttonIndex": index,
            "actionId": button.get("actionId") if isinstance(button, dict) else None,
        })

    return {MessageType.ALERT: alert}

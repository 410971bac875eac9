# -*- coding: utf-8 -*-
"""User profile handlers."""

from typing import Any, Dict

from ..core.envelope import MessageType, ResponseEnvelope, success_response
from ..core.exceptions import CapabilityError
from ..providers.base import UserStore


def create_user_handlers(store: UserStore) -> Dict[str, Any]:

    async def get_user_info(request_id: str, payload: Any) -> ResponseEnvelope:
        return success_response(request_id, await store.get())

    async def set_user_info(request_id: str, payload: Any) -> ResponseEnvelope:
        if not isinstance(payload, dict):
            raise CapabilityError("user info must be an object")
        await store.set(payload)
        return success_response(request_id)

    return {
        MessageType.GET_USER_INFO: get_user_info,
        MessageType.SET_USER_INFO: set_user_info,
    }

"""
Stoa Assistant — AI Coach Chat.

Streams the coach's reply from the configured LLM provider. While the reply
streams, the text pushed to the caller never includes a suggestion JSON
block; once it completes, any embedded habit or task is parsed and attached
to the ChatMessage so the UI can offer it as an import.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from datetime import datetime
from typing import AsyncIterator, Callable

from stoa.core.importer import (
    extract_json_string,
    parse_habit,
    parse_task,
    strip_suggestion_json,
)
from stoa.data.models import ChatMessage

logger = logging.getLogger(__name__)

StreamFn = Callable[[str, list[dict[str, str]]], AsyncIterator[str]]

SYSTEM_PROMPT = (
    "You are Stoa, a warm and practical coach for habits and personal development, "
    "grounded in Stoic philosophy. Help the user turn goals into small, sustainable "
    "habits or into tasks broken down into concrete steps.\n\n"
    "- Talk naturally and ask short clarifying questions when the frequency, "
    "duration or steps are unclear.\n"
    "- Never ask the user to name the habit or task; pick a fitting name yourself.\n"
    "- Only when you are confident, end your reply with ONE ```json code block.\n"
    "  Habit: {\"name\", \"goal\", \"description\", \"category\", \"motivation\", "
    "\"tracking_method\", \"low_level_schedule\": {\"span\": \"daily\" | \"weekly\" | "
    "\"every-n-days\", \"span_interval\": int, \"program\": [{\"steps\": [{\"id\", "
    "\"instructions\", \"feedback\", \"duration_minutes\", \"difficulty\"}]}]}}\n"
    "  Task: {\"name\", \"goal\", \"description\", \"category\", \"deadline\", "
    "\"steps\": [{\"description\", \"scheduled_date\"}]}\n"
    "- Categories: physical, mindfulness, spiritual, social, productivity, learning, "
    "personal growth.\n"
    "- Keep replies concise."
)


def streaming_display(text: str) -> str:
    """Displayable prefix of a partial reply.

    Cuts at the first code fence or brace so a suggestion block never
    flashes on screen, and never ends on whitespace or a partial fence.
    Successive results for a growing reply only ever extend each other.
    """
    cut = len(text)
    for marker in ("```", "{"):
        index = text.find(marker)
        if index != -1:
            cut = min(cut, index)
    return text[:cut].strip().rstrip("`").rstrip()


class ChatService:
    """Runs one coach turn at a time against a conversation history."""

    def __init__(self, stream_fn: StreamFn | None = None, history_limit: int = 20) -> None:
        if stream_fn is None:
            from stoa.core.llm import stream as stream_fn
        self._stream = stream_fn
        self._history_limit = history_limit

    async def reply(
        self,
        history: list[ChatMessage],
        text: str,
        on_text: Callable[[str], None],
    ) -> ChatMessage:
        """Send the user's message and stream the reply into on_text.

        history is updated in place with both messages. If the turn fails
        or is cancelled, only this turn's own message is removed again and
        the error propagates; other turns sharing the history are untouched.
        """
        user_message = ChatMessage(
            id=str(uuid.uuid4()),
            text=text,
            is_user=True,
            timestamp=datetime.now().isoformat(),
        )
        history.append(user_message)
        del history[:-self._history_limit]
        turns = [
            {"role": "user" if m.is_user else "assistant", "content": m.text}
            for m in history
        ]

        full = ""
        try:
            async for chunk in self._stream(SYSTEM_PROMPT, turns):
                full += chunk
                on_text(streaming_display(full))
        except (Exception, asyncio.CancelledError):
            self._forget(history, user_message)
            raise

        cleaned = strip_suggestion_json(full)
        on_text(cleaned)

        message = ChatMessage(
            id=str(uuid.uuid4()),
            text=full,
            is_user=False,
            timestamp=datetime.now().isoformat(),
            cleaned_text=cleaned,
        )
        self._attach_suggestion(message)
        history.append(message)
        return message

    @staticmethod
    def _forget(history: list[ChatMessage], message: ChatMessage) -> None:
        for index, item in enumerate(history):
            if item is message:
                del history[index]
                return

    @staticmethod
    def _attach_suggestion(message: ChatMessage) -> None:
        json_string = extract_json_string(message.text)
        if json_string is None:
            return
        data = json.loads(json_string)
        message.suggested_habit = parse_habit(data)
        if message.suggested_habit is None:
            message.suggested_task = parse_task(data)
        if message.suggested_habit or message.suggested_task:
            logger.info("Coach suggested a %s", "habit" if message.suggested_habit else "task")

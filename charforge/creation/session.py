"""
Character creation turn service.

One turn: retrieve rules context for the user's message, build the system
prompt, ask the chat model (rolling dice when it calls the dice tool),
normalize its reply and, once the character is complete, hand the draft
to the configured sink.
"""

import json
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..core.errors import ChatUnavailable, EmbeddingUnavailable, StoreNotFound
from ..vector.store import VectorStore
from .chat import OllamaChatClient
from .normalizer import normalize_response
from .prompts import build_creation_prompt, format_context
from .schemas import CharacterDraft, StructuredTurnResponse
from .tools import dice_roll_tool, execute_tool_call
from util.logging import logger, truncate_text


class CharacterSink(ABC):
    """Destination for finished characters."""

    @abstractmethod
    def save_character(self, draft: CharacterDraft, session_id: str) -> None:
        pass


@dataclass
class TurnOutcome:
    """Result of one creation turn."""
    response: StructuredTurnResponse
    path: str
    context: str
    saved: bool = False
    tool_results: List[Dict[str, Any]] = field(default_factory=list)


class CharacterCreationService:
    """
    Runs guided character creation turns against a chat model.

    Retrieval is best-effort: when the vector store or the embedding backend
    is unavailable the turn proceeds without reference material. Chat errors
    propagate to the caller.

    Example:
        >>> service = CharacterCreationService(OllamaChatClient(get_chat_config()), store)
        >>> outcome = service.run_turn("session-1", "player@example.com", "I want to play an elf")
        >>> outcome.response.options
    """

    def __init__(
        self,
        chat_client: OllamaChatClient,
        vector_store: Optional[VectorStore] = None,
        sink: Optional[CharacterSink] = None,
        context_top_k: int = 3,
        tools_enabled: bool = True,
        max_tool_rounds: int = 3,
        rng: Optional[random.Random] = None,
    ):
        self.chat_client = chat_client
        self.vector_store = vector_store
        self.sink = sink
        self.context_top_k = context_top_k
        self.tools_enabled = tools_enabled
        self.max_tool_rounds = max_tool_rounds
        self.rng = rng

    def retrieve_context(self, message: str) -> str:
        """Rules excerpts relevant to the message, or '' when retrieval is unavailable."""
        if self.vector_store is None or not message.strip():
            return ""

        try:
            hits = self.vector_store.query(message, top_k=self.context_top_k)
        except (EmbeddingUnavailable, StoreNotFound) as e:
            logger.warning(f"Proceeding without rules context: {e}")
            return ""

        return format_context(hits)

    def build_messages(
        self,
        system_prompt: str,
        message: str,
        history: Optional[List[Dict[str, str]]] = None,
    ) -> List[Dict[str, str]]:
        """
        Conversation sent to the chat model.

        History, when given, is the full conversation so far and is expected
        to end with the current user message; it replaces `message`.
        """
        messages = [{"role": "system", "content": system_prompt}]
        if history:
            messages.extend({"role": m["role"], "content": m["content"]} for m in history)
        else:
            messages.append({"role": "user", "content": message})
        return messages

    def converse(self, session_id: str, messages: List[Dict[str, Any]]) -> Tuple[str, List[Dict[str, Any]]]:
        """
        Ask the chat model, executing the dice tool whenever it asks for one.

        Each round appends the assistant's tool calls and one 'tool' message
        per call, then asks again, for at most `max_tool_rounds` rounds.

        Returns:
            (final reply text, tool result payloads in call order)

        Raises:
            ChatUnavailable: Transport failure or no final reply text
        """
        tools = [dice_roll_tool()] if self.tools_enabled else None
        conversation = messages
        tool_results: List[Dict[str, Any]] = []

        reply = self.chat_client.respond(conversation, tools=tools)
        rounds = 0
        while reply.tool_calls and tools and rounds < self.max_tool_rounds:
            rounds += 1
            # new list per round; earlier requests stay as sent
            conversation = conversation + [{
                "role": "assistant",
                "content": reply.content,
                "tool_calls": [
                    {"function": {"name": call["name"], "arguments": call["arguments"]}}
                    for call in reply.tool_calls
                ]
            }]
            for call in reply.tool_calls:
                payload = execute_tool_call(call["name"], call["arguments"], rng=self.rng)
                tool_results.append(payload)
                conversation = conversation + [
                    {"role": "tool", "tool_name": call["name"], "content": json.dumps(payload)}
                ]
                logger.log_operation("creation.tool", "failed" if "error" in payload else "success", {
                    "session_id": session_id,
                    **payload
                })
            reply = self.chat_client.respond(conversation, tools=tools)

        if not reply.content:
            raise ChatUnavailable("Empty reply from chat model", model=self.chat_client.model)
        return reply.content, tool_results

    def run_turn(
        self,
        session_id: str,
        user_email: str,
        message: str,
        history: Optional[List[Dict[str, str]]] = None,
    ) -> TurnOutcome:
        """
        Execute one creation turn.

        Raises:
            ChatUnavailable: The chat model could not produce a reply
        """
        context = self.retrieve_context(message)
        system_prompt = build_creation_prompt(session_id, user_email or "Unknown", context)
        messages = self.build_messages(system_prompt, message, history)

        logger.log_chat_turn(session_id, self.chat_client.model, len(messages), details={
            "message": truncate_text(message),
            "context_chars": len(context)
        })

        reply, tool_results = self.converse(session_id, messages)
        result = normalize_response(reply)

        saved = False
        character = result.response.character
        if character.is_complete and self.sink is not None:
            self.sink.save_character(character, session_id)
            saved = True
            logger.log_operation("creation.save", "success", {
                "session_id": session_id,
                "name": character.name
            })

        return TurnOutcome(
            response=result.response,
            path=result.path,
            context=context,
            saved=saved,
            tool_results=tool_results,
        )

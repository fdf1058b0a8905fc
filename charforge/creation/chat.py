"""
Chat completion client for the local Ollama model.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
import ollama

from ..core.config import ChatConfig
from ..core.errors import ChatUnavailable
from util.logging import logger


@dataclass
class ChatReply:
    """Assistant reply text plus the tool calls it requested."""
    content: str
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)


def _tool_calls(message) -> List[Dict[str, Any]]:
    """Flatten Ollama tool calls to {'name', 'arguments'} dicts."""
    calls = []
    for call in message.get('tool_calls') or []:
        function = call.get('function') or {}
        calls.append({
            'name': function.get('name') or '',
            'arguments': dict(function.get('arguments') or {})
        })
    return calls


class OllamaChatClient:
    """
    Thin wrapper over ollama.Client.chat.

    When streaming is enabled the chunks are concatenated before returning,
    so callers always see one reply.

    Example:
        >>> client = OllamaChatClient(get_chat_config())
        >>> text = client.complete([{"role": "user", "content": "Hello"}])
    """

    def __init__(self, config: ChatConfig, client: Optional[ollama.Client] = None):
        self.config = config
        self._client = client

    @property
    def client(self) -> ollama.Client:
        if self._client is None:
            self._client = ollama.Client(host=self.config.base_url, timeout=self.config.timeout_seconds)
        return self._client

    @property
    def model(self) -> str:
        return self.config.model

    def build_options(self) -> Dict[str, Any]:
        """Sampling options in Ollama's naming."""
        return {
            'temperature': self.config.temperature,
            'top_p': self.config.top_p,
            'num_predict': self.config.max_tokens
        }

    def respond(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> ChatReply:
        """
        Send a conversation and return the reply with any requested tool calls.

        Args:
            messages: Role-tagged messages ('system', 'user', 'assistant', 'tool')
            tools: Function-calling schemas offered to the model

        Returns:
            ChatReply; content may be empty when the model only calls tools

        Raises:
            ChatUnavailable: Transport error, HTTP error or timeout
        """
        kwargs = dict(
            model=self.model,
            messages=messages,
            stream=self.config.stream,
            options=self.build_options()
        )
        if tools:
            kwargs['tools'] = tools

        try:
            if self.config.stream:
                parts, tool_calls = [], []
                for chunk in self.client.chat(**kwargs):
                    message = chunk.get('message') or {}
                    parts.append(message.get('content') or '')
                    tool_calls.extend(_tool_calls(message))
                content = "".join(parts)
            else:
                message = self.client.chat(**kwargs).get('message') or {}
                content = message.get('content') or ''
                tool_calls = _tool_calls(message)
        except ollama.ResponseError as e:
            raise ChatUnavailable(f"Ollama model error: HTTP {e.status_code}: {e.error}", model=self.model)
        except (httpx.HTTPError, ConnectionError) as e:
            raise ChatUnavailable(f"Cannot reach Ollama at {self.config.base_url}: {e}", model=self.model)

        return ChatReply(content=content, tool_calls=tool_calls)

    def complete(self, messages: List[Dict[str, Any]]) -> str:
        """
        Send a conversation and return the assistant reply text.

        Raises:
            ChatUnavailable: Transport error, HTTP error, timeout or empty reply
        """
        content = self.respond(messages).content
        if not content:
            raise ChatUnavailable("Empty reply from Ollama", model=self.model)
        return content

    def health_check(self) -> bool:
        """Check if Ollama is reachable and the chat model is available."""
        try:
            models = self.client.list()
        except (ollama.ResponseError, httpx.HTTPError, ConnectionError) as e:
            logger.warning(f"Ollama health check failed: {e}")
            return False

        names = []
        for model in models.get('models', []) or []:
            name = model.get('model') or model.get('name') or ''
            names.append(name)
        base_names = [n.split(':')[0] for n in names]
        available = self.model in names or self.model.split(':')[0] in base_names
        if not available:
            logger.warning(f"Model {self.model} not found. Available: {names}")
        return available

"""
LLM Provider - Supports OpenAI, Ollama, Groq, and other OpenAI-compatible providers
"""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
from openai import AsyncOpenAI, OpenAIError

from ..config import Settings
from ..core.exceptions import LLMProviderError
from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ToolCall:
    id: str
    name: str
    arguments: str = "{}"


@dataclass
class ChatTurn:
    """One assistant turn: text, requested tool calls, or both"""
    content: Optional[str] = None
    tool_calls: List[ToolCall] = field(default_factory=list)

    def to_message(self) -> Dict[str, Any]:
        message: Dict[str, Any] = {"role": "assistant", "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in self.tool_calls
            ]
        return message


class LLMProvider:
    """Unified interface for different LLM providers"""

    def __init__(self, config: Settings):
        self.config = config
        self.provider = self._detect_provider()
        self._client: Optional[AsyncOpenAI] = None
        logger.info(f"Initialized LLM provider: {self.provider}")

    def _detect_provider(self) -> str:
        """Detect which LLM provider to use based on configuration"""
        if self.config.use_ollama:
            return "ollama"

        # Check OpenAI API key format
        api_key = self.config.openai_api_key
        if api_key.startswith("gsk_"):
            return "groq"
        elif "ollama" in api_key.lower():
            return "ollama"
        else:
            # Default to OpenAI-compatible API
            return "openai"

    @property
    def model(self) -> str:
        return self.config.ollama_model if self.provider == "ollama" else self.config.openai_model

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            base_url = self.config.openai_api_base
            if self.provider == "ollama":
                # Ollama serves an OpenAI-compatible API under /v1
                base_url = f"{self.config.ollama_base_url.rstrip('/')}/v1"
            self._client = AsyncOpenAI(api_key=self.config.openai_api_key, base_url=base_url)
        return self._client

    async def generate_completion(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None
    ) -> Dict[str, Any]:
        """
        Generate completion using the configured provider

        Returns:
            {
                "content": str,
                "tokens_used": int,
                "model": str,
                "provider": str
            }
        """
        max_tokens = max_tokens or self.config.max_tokens
        temperature = self.config.openai_temperature if temperature is None else temperature

        if self.provider == "ollama":
            return await self._ollama_completion(prompt, system_prompt, max_tokens, temperature)
        else:
            return await self._openai_compatible_completion(prompt, system_prompt, max_tokens, temperature)

    async def _ollama_completion(
        self,
        prompt: str,
        system_prompt: Optional[str],
        max_tokens: int,
        temperature: float
    ) -> Dict[str, Any]:
        """Call Ollama API"""
        full_prompt = prompt
        if system_prompt:
            full_prompt = f"{system_prompt}\n\n{prompt}"

        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.post(
                    f"{self.config.ollama_base_url}/api/generate",
                    json={
                        "model": self.config.ollama_model,
                        "prompt": full_prompt,
                        "stream": False,
                        "options": {
                            "temperature": temperature,
                            "num_predict": max_tokens
                        }
                    }
                )
                response.raise_for_status()
                data = response.json()

                return {
                    "content": data.get("response", ""),
                    "tokens_used": data.get("eval_count", 0) + data.get("prompt_eval_count", 0),
                    "model": self.config.ollama_model,
                    "provider": "ollama",
                }
        except httpx.HTTPError as e:
            logger.error(f"Ollama API error: {e}")
            raise LLMProviderError("Ollama is not running. Start it with: ollama serve", "ollama") from e

    async def _openai_compatible_completion(
        self,
        prompt: str,
        system_prompt: Optional[str],
        max_tokens: int,
        temperature: float
    ) -> Dict[str, Any]:
        """Call OpenAI-compatible API (OpenAI, Groq, Together, etc.)"""
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        try:
            response = await self.client.chat.completions.create(
                model=self.config.openai_model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature
            )
        except OpenAIError as e:
            logger.error(f"LLM API error: {e}")
            raise LLMProviderError(f"LLM API failed: {str(e)}", self.provider) from e

        return {
            "content": response.choices[0].message.content or "",
            "tokens_used": response.usage.total_tokens if response.usage else 0,
            "model": response.model,
            "provider": self.provider
        }

    async def complete_with_tools(
        self,
        messages: List[Dict[str, Any]],
        tools: List[Dict[str, Any]],
    ) -> ChatTurn:
        """Run one chat-completion turn with function tools available"""
        request: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.config.openai_temperature,
            "max_tokens": self.config.max_tokens,
        }
        if tools:
            request["tools"] = tools
            request["tool_choice"] = "auto"

        try:
            response = await self.client.chat.completions.create(**request)
        except OpenAIError as e:
            logger.error(f"LLM tool call error: {e}")
            raise LLMProviderError(f"LLM API failed: {str(e)}", self.provider) from e

        message = response.choices[0].message
        tool_calls = [
            ToolCall(id=call.id, name=call.function.name, arguments=call.function.arguments or "{}")
            for call in (message.tool_calls or [])
        ]
        return ChatTurn(content=message.content, tool_calls=tool_calls)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


def decode_arguments(raw: Optional[str]) -> Dict[str, Any]:
    """Parse tool-call arguments; anything undecodable becomes {}"""
    try:
        value = json.loads(raw or "{}")
    except (TypeError, json.JSONDecodeError):
        logger.warning(f"Could not decode tool arguments: {raw!r}")
        return {}
    return value if isinstance(value, dict) else {}

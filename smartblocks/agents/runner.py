"""
AI Agent runner for Smart Blocks.

This module handles communication with Ollama and implements the AI
capabilities (summarize, reorder, embed, suggest extraction) on top of it.
"""

import httpx
import json
import time
import logging
from typing import Any, Dict, List, Optional

from ..config import ConfigManager
from ..errors import AgentError
from ..models import Block, ReorderOptions, SummarizationOptions
from .capabilities import heuristic_extraction
from .registry import AgentConfig, AgentRegistry


def _strip_code_fences(response: str) -> str:
    """Remove markdown code block formatting around a model response."""
    response = response.strip()
    if response.startswith("```json"):
        response = response[7:]
    if response.startswith("```"):
        response = response[3:]
    if response.endswith("```"):
        response = response[:-3]
    return response.strip()


class AgentRunner:
    """
    Manages communication with Ollama and runs AI agents.
    """

    def __init__(self, ollama_host: str = "http://localhost:11434", model: str = "gemma3",
                 embedding_model: str = "nomic-embed-text", timeout: float = 30.0,
                 client: Optional[httpx.AsyncClient] = None,
                 registry: Optional[AgentRegistry] = None):
        """
        Initialize the agent runner.

        Args:
            ollama_host: The Ollama server URL
            model: The model name to use for generation
            embedding_model: The model name to use for embeddings
            timeout: Request timeout in seconds
            client: Optional preconfigured HTTP client (e.g. with a mock transport)
            registry: Optional agent registry with custom prompts
        """
        self.ollama_host = ollama_host.rstrip("/")
        self.model = model
        self.embedding_model = embedding_model
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.registry = registry or AgentRegistry()

    @classmethod
    def from_config(cls, config: ConfigManager, **kwargs) -> "AgentRunner":
        """Create a runner using the ai.* configuration values."""
        return cls(
            ollama_host=config.ollama_host,
            model=config.model_name,
            embedding_model=config.embedding_model,
            timeout=config.ollama_timeout,
            **kwargs
        )

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def _get_agent(self, name: str) -> AgentConfig:
        agent_config = self.registry.get_agent(name)
        if not agent_config:
            raise AgentError(f"Agent '{name}' not found in registry")
        return agent_config

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a JSON payload to Ollama.

        Raises:
            AgentError: If the server cannot be reached or answers with an error
        """
        try:
            response = await self.client.post(f"{self.ollama_host}{path}", json=payload)
            response.raise_for_status()
            return response.json()
        except httpx.RequestError as e:
            raise AgentError(f"Failed to connect to Ollama: {e}") from e
        except httpx.HTTPStatusError as e:
            raise AgentError(f"Ollama request failed: {e}") from e
        except ValueError as e:
            raise AgentError(f"Ollama returned invalid JSON: {e}") from e

    async def _call_ollama(self, prompt: str, agent_name: str, block_id: Optional[str] = None) -> str:
        """
        Run one generation request for an agent.

        Args:
            prompt: The user prompt
            agent_name: Registry name of the agent, supplies the system prompt
            block_id: Related block, for logging

        Returns:
            The model's response text
        """
        agent_config = self._get_agent(agent_name)
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": False
        }
        if agent_config.system_prompt:
            payload["system"] = agent_config.system_prompt
        if agent_config.expects_json:
            payload["format"] = "json"

        start_time = time.time()
        try:
            result = await self._post("/api/generate", payload)
        finally:
            execution_time_ms = int((time.time() - start_time) * 1000)
            logging.debug(f"Agent '{agent_name}' call for block {block_id} took {execution_time_ms} ms")

        return result.get("response", "")

    async def summarize(self, block: Block, options: SummarizationOptions) -> str:
        """
        Run the summarizer agent on a block.

        Args:
            block: The block to summarize
            options: Style and length constraints

        Returns:
            The summary text
        """
        prompt = f"""Summarize this block.

Type: {block.type}
Title: {block.title or "N/A"}
Style: {options.style}
Maximum length: {options.max_length} characters

Content:
{block.content}"""

        response = await self._call_ollama(prompt, "summarizer", block.id)
        return response.strip()

    async def suggest_order(self, blocks: List[Block], options: ReorderOptions) -> List[int]:
        """
        Run the reorder agent over a list of blocks.

        A response that is not a permutation of the block positions is logged
        and replaced by the current order.

        Returns:
            Positions 0..n-1 in suggested order
        """
        identity = list(range(len(blocks)))
        numbered = "\n\n".join(
            f"[{index}] ({block.type}) {block.title or ''}\n{block.content}"
            for index, block in enumerate(blocks)
        )
        prompt = f"""Order these {len(blocks)} blocks using the '{options.algorithm}' strategy.

{numbered}

Remember to output only valid JSON."""

        response = await self._call_ollama(prompt, "reorder")

        try:
            parsed = json.loads(_strip_code_fences(response))
        except json.JSONDecodeError as e:
            logging.warning(f"Failed to parse reorder agent JSON response: {e}")
            return identity

        order = parsed.get("order") if isinstance(parsed, dict) else parsed
        if not isinstance(order, list) or sorted(order) != identity:
            logging.warning(f"Reorder agent returned an invalid order: {order}")
            return identity
        return order

    async def embed(self, block: Block) -> List[float]:
        """Get an embedding vector for a block's content."""
        result = await self._post("/api/embeddings", {
            "model": self.embedding_model,
            "prompt": block.content
        })
        embedding = result.get("embedding")
        if not isinstance(embedding, list):
            raise AgentError(f"Ollama returned no embedding for block {block.id}")
        return [float(value) for value in embedding]

    async def suggest_extraction(self, block: Block) -> Dict[str, Any]:
        """
        Run the extraction agent on a block.

        Falls back to the block's own title, tags and type when the response
        cannot be parsed.
        """
        prompt = f"""Suggest metadata for this block.

Current type: {block.type}
Current tags: {', '.join(block.tags) or 'none'}

Content:
{block.content}"""

        response = await self._call_ollama(prompt, "extraction", block.id)

        try:
            suggestion = json.loads(_strip_code_fences(response))
        except json.JSONDecodeError as e:
            logging.warning(f"Failed to parse extraction agent JSON response for block {block.id}: {e}")
            return await heuristic_extraction(block)

        if not isinstance(suggestion, dict):
            return await heuristic_extraction(block)

        fallback = await heuristic_extraction(block)
        return {
            "title": suggestion.get("title") or fallback["title"],
            "tags": list(suggestion.get("tags") or []),
            "type": suggestion.get("type") or fallback["type"],
        }

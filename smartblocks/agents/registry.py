"""
Agent Registry for Smart Blocks.

This module defines the AI agents used for block processing, their
configurations and prompts. Keeping them in one registry makes it easy to
tune a prompt or add an agent without touching the runner.
"""

from typing import Dict, List, Optional
from dataclasses import dataclass


@dataclass
class AgentConfig:
    """
    Configuration for an AI agent.
    """
    name: str
    description: str
    system_prompt: str
    expects_json: bool = False
    timeout: float = 30.0


class AgentRegistry:
    """
    Registry of all available AI agents and their configurations.
    """

    def __init__(self):
        """Initialize the agent registry with default agents."""
        self._agents: Dict[str, AgentConfig] = {}
        self._register_default_agents()

    def _register_default_agents(self):
        """Register the default agents used by Smart Blocks."""

        # Summarizer - condenses a single block
        self.register_agent(AgentConfig(
            name="summarizer",
            description="Summarizes the content of one block",
            system_prompt="""You are a careful note editor. Summarize the block of notes you are given.

Rules:
1. Keep only the core claim or fact of the block
2. Do not add information that is not in the block
3. Respect the requested style and maximum length
4. Output only the summary text, no preamble""",
        ))

        # Reorder - proposes a reading order for blocks
        self.register_agent(AgentConfig(
            name="reorder",
            description="Suggests a logical reading order for a list of blocks",
            system_prompt="""You are an editor arranging notes into a coherent order. You receive numbered blocks.

Decide the order in which they read best (definitions before arguments, arguments before examples, related ideas together).

Output format (JSON only, no explanations):
{"order": [2, 0, 1]}

The list must contain every block number exactly once.""",
            expects_json=True,
        ))

        # Extraction - proposes metadata for a block turned into its own note
        self.register_agent(AgentConfig(
            name="extraction",
            description="Suggests title, tags and type for an extracted block",
            system_prompt="""You are an information clerk. A block of notes is about to become its own note.

Suggest a short title, up to five lowercase tags and the block type (one of: summary, zettel, quote, argument, definition, example, question, insight, todo, note).

Output format (JSON only, no explanations):
{"title": "Short title", "tags": ["tag"], "type": "note"}""",
            expects_json=True,
        ))

    def register_agent(self, config: AgentConfig) -> None:
        """
        Register a new agent configuration.

        Args:
            config: The agent configuration to register
        """
        self._agents[config.name] = config

    def get_agent(self, name: str) -> Optional[AgentConfig]:
        """
        Get an agent configuration by name.

        Args:
            name: The name of the agent

        Returns:
            The agent configuration, or None if not found
        """
        return self._agents.get(name)

    def list_agents(self) -> List[str]:
        """
        Get a list of all registered agent names.

        Returns:
            List of agent names
        """
        return list(self._agents.keys())

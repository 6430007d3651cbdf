"""
Agent Platform - Core framework for running long-lived bot agents
"""

import asyncio
import logging
import os
from typing import Dict, Optional


def configure_logging() -> None:
    """Configure root logging for the process (level from LOG_LEVEL)."""
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format='[%(asctime)s] %(levelname)s - %(name)s: %(message)s',
    )


logger = logging.getLogger(__name__)


class Agent:
    """Base class for all agents"""

    def __init__(self, name: str, config: Optional[Dict] = None):
        self.name = name
        self.config = config or {}
        self.logger = logging.getLogger(self.name)

    async def run(self) -> None:
        """
        Main agent loop. Override in subclass.
        """
        raise NotImplementedError("Subclass must implement run()")

    async def close(self) -> None:
        """Release resources held by the agent. Override if needed."""
        return None


class AgentPlatform:
    """Host for long-running service agents"""

    def __init__(self, max_restarts: int = 5, base_delay: float = 5.0):
        self.max_restarts = max_restarts
        self.base_delay = base_delay
        self.agents: Dict[str, Agent] = {}

    async def start_service(self, agent: Agent) -> None:
        """
        Start a long-running service agent (runs indefinitely)

        Restarts the agent with linear back-off when it crashes, and
        re-raises once the restart budget is exhausted.

        Args:
            agent: Agent instance to run as service
        """
        logger.info(f"Starting service agent: {agent.name}")
        self.agents[agent.name] = agent

        restart_count = 0

        while restart_count < self.max_restarts:
            try:
                # Run the agent's main loop (blocks indefinitely)
                await agent.run()

                # If we get here, agent stopped gracefully
                logger.info(f"Service agent {agent.name} stopped gracefully")
                break

            except asyncio.CancelledError:
                logger.info(f"Service agent {agent.name} cancelled")
                raise

            except Exception as e:
                restart_count += 1
                delay = self.base_delay * restart_count

                logger.error(
                    f"Service agent {agent.name} crashed (attempt {restart_count}/{self.max_restarts}): {e}",
                    exc_info=True
                )

                if restart_count < self.max_restarts:
                    logger.info(f"Restarting in {delay} seconds...")
                    await asyncio.sleep(delay)
                else:
                    logger.error(f"Service agent {agent.name} exceeded max restarts, giving up")
                    raise

    async def close(self):
        """Close all agents"""
        for agent in self.agents.values():
            try:
                await agent.close()
            except Exception as e:
                logger.warning(f"Failed to close agent {agent.name}: {e}")

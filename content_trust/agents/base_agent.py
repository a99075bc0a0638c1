"""Abstract base class for all pipeline agents."""

from abc import ABC, abstractmethod
import uuid
from datetime import datetime, timezone
from typing import Optional, Any
from loguru import logger

from content_trust.llm.errors import InferenceUnavailableError
from content_trust.llm.inference_client import InferenceClient, get_inference_client
from content_trust.llm.json_utils import extract_json_object

_UNSET = object()


class BaseAgent(ABC):
    """
    Abstract base class defining the common interface for all agents.

    Provides unique identification, logging context binding, lazy
    inference client resolution and JSON response parsing. Concrete
    agents implement an AI path (which may raise InferenceError
    subclasses) and a deterministic fallback.

    Attributes:
        agent_id: Unique UUID identifier for this agent instance
        name: Human-readable agent name
        description: Brief description of agent purpose
        logger: Loguru logger bound with agent context
        created_at: UTC timestamp of agent instantiation
    """

    def __init__(
        self,
        name: str,
        description: str = "",
        inference_client: Any = _UNSET,
    ):
        """
        Initialize base agent.

        Args:
            name: Human-readable agent name
            description: Optional description of agent purpose
            inference_client: Client to use. Omit to build one from settings
                on first use; pass None to run without inference.
        """
        self.agent_id = str(uuid.uuid4())
        self.name = name
        self.description = description
        self.logger = logger.bind(agent_id=self.agent_id, agent_name=name, component=name)
        self.created_at = datetime.now(timezone.utc)
        self._inference_client = inference_client

        self.logger.debug(f"Agent {name} initialized with ID {self.agent_id}")

    @property
    def inference_client(self) -> Optional[InferenceClient]:
        """Lazy-resolve the inference client from settings."""
        if self._inference_client is _UNSET:
            self._inference_client = get_inference_client()
        return self._inference_client

    async def _infer_json(
        self,
        prompt: str,
        schema: Optional[dict] = None,
        *,
        system_prompt: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> Optional[dict]:
        """
        Call the inference client and parse a JSON object from the answer.

        Returns:
            Parsed dict, or None when the output is malformed

        Raises:
            InferenceUnavailableError: If no client is configured
            TransientInferenceError: Propagated from the client for retry
        """
        client = self.inference_client
        if client is None:
            raise InferenceUnavailableError(f"{self.name}: no inference client configured")

        response = await client.infer(
            prompt,
            schema,
            system_prompt=system_prompt,
            image_url=image_url,
        )
        parsed = extract_json_object(response)
        if parsed is None:
            self.logger.warning("Malformed model output, could not parse JSON")
        return parsed

    @abstractmethod
    def get_capabilities(self) -> list[str]:
        """
        Return list of agent capabilities.

        Returns:
            List of capability identifiers
        """
        pass

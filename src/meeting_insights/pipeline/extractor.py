"""
Model collaborator for insight extraction.

Builds the extraction prompt and calls the chat model. The response is
returned as untrusted text; parsing and mapping happen downstream.
"""

from ..clients.openai_client import OpenAIClient
from ..config import config
from ..errors import LLMError, wrap_openai_error
from ..logging import get_logger
from ..models.extraction import DeterministicResult, ModelResponse
from ..prompts.extract_insights import build_extraction_prompt

logger = get_logger(__name__)


class InsightExtractor:
    """
    Calls the language model for one transcript.

    Any client failure surfaces as an LLMError subclass.
    """

    def __init__(
        self,
        openai_client: OpenAIClient,
        temperature: float | None = None,
    ):
        """
        Initialize the extractor.

        Args:
            openai_client: Configured OpenAI client
            temperature: Sampling temperature (defaults to OPENAI_TEMPERATURE)
        """
        self.openai_client = openai_client
        self.temperature = config.OPENAI_TEMPERATURE if temperature is None else temperature

    async def generate(
        self,
        transcript: str,
        hints: DeterministicResult | None = None,
    ) -> ModelResponse:
        """
        Ask the model for a JSON extraction of ``transcript``.

        Args:
            transcript: Raw transcript text
            hints: Gated deterministic signals offered as pre-extracted values

        Returns:
            ModelResponse whose content is expected, not guaranteed, to hold
            a JSON object

        Raises:
            LLMError: If the model call failed
        """
        messages = build_extraction_prompt(transcript, hints)
        try:
            response = await self.openai_client.chat_completion(
                messages,
                temperature=self.temperature,
            )
        except LLMError:
            raise
        except Exception as e:
            raise wrap_openai_error(e, {'operation': 'generate'}) from e

        logger.debug(
            'extractor.model_response',
            model=response.model,
            content_length=len(response.content),
            duration_ms=response.duration_ms,
        )
        return response

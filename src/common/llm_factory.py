"""
LLM Factory Module.

Provides factory functions for the optional text-generation provider used
by the wizard. The provider is injected into StoryWizardService at
construction; when no API key is configured the factories return None and
the wizard runs on its deterministic fallbacks.

Usage:
    from src.common.llm_factory import create_story_llm

    llm = create_story_llm()          # ChatOpenAI or None
    service = StoryWizardService(entries, activities, stories, llm=llm)
"""

import logging
from typing import Any, List, Optional

from langchain_core.callbacks import BaseCallbackHandler
from langchain_core.outputs import LLMResult
from langchain_openai import ChatOpenAI

from src.common.config import Config

logger = logging.getLogger(__name__)


class UsageLoggingCallback(BaseCallbackHandler):
    """
    LangChain callback handler that logs token usage per generation call.

    Usage:
        llm = ChatOpenAI(..., callbacks=[UsageLoggingCallback(stage="narrative")])
    """

    def __init__(self, stage: Optional[str] = None):
        super().__init__()
        self.stage = stage

    def on_llm_end(self, response: LLMResult, **kwargs: Any) -> None:
        if not response.llm_output:
            return

        usage = response.llm_output.get("token_usage", {}) or {}
        model = response.llm_output.get("model_name", "unknown")
        input_tokens = usage.get("prompt_tokens", 0) or usage.get("input_tokens", 0)
        output_tokens = usage.get("completion_tokens", 0) or usage.get("output_tokens", 0)

        if input_tokens or output_tokens:
            logger.info(
                f"[{self.stage or 'llm'}] {model}: "
                f"{input_tokens} input / {output_tokens} output tokens"
            )


def create_story_llm(
    model: Optional[str] = None,
    temperature: Optional[float] = None,
    stage: str = "narrative",
    additional_callbacks: Optional[List[BaseCallbackHandler]] = None,
    **kwargs: Any,
) -> Optional[ChatOpenAI]:
    """
    Create the chat model used for narrative and question generation.

    Client-side retries are disabled: the wizard treats a failed call as a
    signal to use its local fallback, not to try again.

    Args:
        model: Model name (defaults to Config.STORY_MODEL)
        temperature: Temperature (defaults to Config.STORY_TEMPERATURE)
        stage: Stage name for usage logging
        additional_callbacks: Additional callbacks to add
        **kwargs: Additional ChatOpenAI parameters

    Returns:
        ChatOpenAI instance, or None when no provider is configured
    """
    if not Config.is_llm_configured():
        logger.info("No generation provider configured; wizard will use fallbacks")
        return None

    effective_model = model or Config.STORY_MODEL
    effective_temperature = temperature if temperature is not None else Config.STORY_TEMPERATURE

    callbacks: List[BaseCallbackHandler] = [UsageLoggingCallback(stage=stage)]
    if additional_callbacks:
        callbacks.extend(additional_callbacks)

    llm = ChatOpenAI(
        model=effective_model,
        temperature=effective_temperature,
        api_key=Config.get_llm_api_key(),
        base_url=Config.get_llm_base_url(),
        max_tokens=Config.STORY_MAX_TOKENS,
        timeout=Config.NARRATIVE_TIMEOUT_SECONDS,
        max_retries=0,
        callbacks=callbacks,
        **kwargs,
    )

    logger.debug(f"Created story LLM: model={effective_model}, stage={stage}")

    return llm


def create_question_llm(**kwargs: Any) -> Optional[ChatOpenAI]:
    """
    Create the (cheaper) chat model used for dynamic interview questions.

    Returns:
        ChatOpenAI instance, or None when no provider is configured
    """
    return create_story_llm(
        model=Config.QUESTION_MODEL,
        temperature=Config.QUESTION_TEMPERATURE,
        stage="questions",
        **kwargs,
    )

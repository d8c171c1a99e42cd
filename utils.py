# ============================================================================
# FILE: utils.py
# AI text generation client and text helpers
# ============================================================================

import logging
from typing import Any, Dict, Optional

import anthropic
import httpx
import ollama
import openai
from bs4 import BeautifulSoup
from langchain_anthropic import ChatAnthropic
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_ollama import ChatOllama
from langchain_openai import ChatOpenAI

from config import AIProvider, Config
from errors import ExtractionError, NotInitialized, PicoZotError, RemoteAPIError
from models import PicoRecord, ReviewRequest

logger = logging.getLogger(__name__)

OLLAMA_PREFIX = "ollama:"


class AIService:
    """
    Text generation client for the configured chat model.

    Holds the API key, model name and endpoint taken from the configuration
    map; one instance lives on the session handle.
    """

    SYSTEM_PROMPT = "You are a helpful assistant specializing in medical research and PICO analysis."

    def __init__(self, config: Dict[str, Any]):
        self.api_key = config.get("aiApiKey") or ""
        self.model_name = config.get("aiModel") or Config.DEFAULT_MODEL
        self.api_endpoint = config.get("aiApiEndpoint") or Config.DEFAULT_API_ENDPOINT

    @staticmethod
    def get_provider(model_name: str) -> AIProvider:
        """Picks the backend from the model name."""
        name_lower = model_name.lower()
        if name_lower.startswith(OLLAMA_PREFIX):
            return AIProvider.OLLAMA
        if "claude" in name_lower:
            return AIProvider.ANTHROPIC
        return AIProvider.OPENAI

    @staticmethod
    def base_url(endpoint: str) -> str:
        """OpenAI-compatible base URL for a full chat-completions endpoint."""
        url = endpoint.rstrip("/")
        suffix = "/chat/completions"
        return url[: -len(suffix)] if url.endswith(suffix) else url

    @property
    def provider(self) -> AIProvider:
        return self.get_provider(self.model_name)

    @property
    def is_ready(self) -> bool:
        return self.provider is AIProvider.OLLAMA or bool(self.api_key)

    def get_model(self, temperature: float, max_tokens: int):
        """Initializes the chat model for the configured provider."""
        provider = self.provider
        if provider is AIProvider.OPENAI:
            return ChatOpenAI(
                model=self.model_name,
                api_key=self.api_key,
                base_url=self.base_url(self.api_endpoint),
                temperature=temperature,
                max_tokens=max_tokens,
            )
        if provider is AIProvider.ANTHROPIC:
            return ChatAnthropic(
                model=self.model_name,
                api_key=self.api_key,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        return ChatOllama(
            model=self.model_name[len(OLLAMA_PREFIX):],
            temperature=temperature,
            num_predict=max_tokens,
        )

    def generate_text(self, prompt: str, temperature: Optional[float] = None,
                      max_tokens: Optional[int] = None) -> str:
        """Send one chat request and return the first completion's text."""
        if not self.is_ready:
            raise NotInitialized("AI API key not found in configuration")

        temperature = Config.DEFAULT_TEMPERATURE if temperature is None else temperature
        max_tokens = max_tokens or Config.DEFAULT_MAX_TOKENS
        logger.debug(f"Generating text with {self.model_name}: {prompt[:100]}...")

        model = self.get_model(temperature, max_tokens)
        messages = [SystemMessage(content=self.SYSTEM_PROMPT), HumanMessage(content=prompt)]
        try:
            response = model.invoke(messages)
        except (openai.APIError, anthropic.APIError, ollama.ResponseError, ConnectionError, httpx.HTTPError) as e:
            logger.error(f"Failed to generate text with {self.model_name}: {e}")
            raise RemoteAPIError(server_message(e), getattr(e, "status_code", None)) from e

        logger.debug("Text generated successfully")
        return message_text(response.content)

    def extract_pico_elements(self, text: str) -> PicoRecord:
        """Ask the model for the four PICO fields of ``text``. Single attempt, strict JSON."""
        prompt = f"""
        Analyze the following text and extract the PICO elements:

        Population/Problem: The specific patient population or problem being addressed
        Intervention: The intervention or exposure being considered
        Comparison: The comparison intervention or exposure (if applicable)
        Outcome: The outcome measures

        Text to analyze:
        {text}

        Please return the results in JSON format with the following structure:
        {{
          "population": "description",
          "intervention": "description",
          "comparison": "description",
          "outcome": "description"
        }}
        """
        try:
            result = self.generate_text(prompt)
            return PicoRecord.from_json(result)
        except (PicoZotError, ValueError) as e:
            logger.error(f"Failed to extract PICO elements: {e}")
            raise ExtractionError(f"Failed to extract PICO elements: {e}") from e

    def generate_review(self, request: ReviewRequest) -> str:
        """Generates the literature review prose for a ReviewRequest."""
        pico = request.pico_elements
        citations_text = "\n\n".join(c.to_prompt() for c in request.citations)

        prompt = f"""
        Generate a comprehensive literature review based on the following PICO elements and citations:

        PICO Elements:
        Population/Problem: {pico.population}
        Intervention: {pico.intervention}
        Comparison: {pico.comparison or 'N/A'}
        Outcome: {pico.outcome}

        Citations:
        {citations_text}

        {request.additional_instructions}

        Please structure the literature review with the following sections:
        1. Introduction
        2. Methods
        3. Results
        4. Discussion
        5. Conclusion
        """
        try:
            return self.generate_text(prompt, max_tokens=Config.REVIEW_MAX_TOKENS)
        except PicoZotError as e:
            logger.error(f"Failed to generate literature review: {e}")
            raise


def server_message(error: Exception) -> str:
    """Error text reported by the server, falling back to the SDK's message."""
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        inner = body.get("error", body)
        if isinstance(inner, dict) and inner.get("message"):
            return str(inner["message"])
    detail = getattr(error, "error", None)
    if isinstance(detail, str) and detail:
        return detail
    response = getattr(error, "response", None)
    reason = getattr(response, "reason_phrase", None)
    if reason:
        return reason
    return getattr(error, "message", None) or str(error)


def message_text(content: Any) -> str:
    """Flattens a chat message's content (plain string or content blocks)."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def strip_html(markup: str) -> str:
    """Plain text of an HTML note."""
    if not markup:
        return ""
    text = BeautifulSoup(markup, "html.parser").get_text(" ")
    return " ".join(text.split())

import json
from typing import List, Optional
from openai import OpenAI
from videolens.core.config import settings
from videolens.core.errors import GenerationFailed
from videolens.core.logging_config import get_logger

logger = get_logger(__name__)

# created on first use so importing this module works without a key
_client: Optional[OpenAI] = None


def _get_client() -> OpenAI:
    global _client
    if _client is None:
        if not settings.OPENAI_API_KEY:
            logger.error("OPENAI_API_KEY is not set; llm stages are unavailable")
            raise GenerationFailed("OPENAI_API_KEY is not set")
        _client = OpenAI(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL or None,
            timeout=settings.LLM_TIMEOUT_SEC,
        )
    return _client


def invoke_structured(messages: List[dict], schema_name: str, schema: dict, model: Optional[str] = None) -> dict:
    """
    chat completion constrained to a strict json schema
    returns: the parsed json object
    raises GenerationFailed on api errors or unusable output
    """
    client = _get_client()
    try:
        response = client.chat.completions.create(
            model=model or settings.LLM_MODEL,
            messages=messages,
            response_format={
                "type": "json_schema",
                "json_schema": {
                    "name": schema_name,
                    "strict": True,
                    "schema": schema,
                },
            },
        )
    except Exception as e:
        raise GenerationFailed(f"llm request failed: {e}") from e

    if not response.choices:
        raise GenerationFailed("llm returned no choices")
    content = response.choices[0].message.content
    if not content:
        raise GenerationFailed("llm returned an empty response")

    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as e:
        raise GenerationFailed(f"llm returned invalid json: {e}") from e
    if not isinstance(parsed, dict):
        raise GenerationFailed("llm response is not a json object")
    return parsed

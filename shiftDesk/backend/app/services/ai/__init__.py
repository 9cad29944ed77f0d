from .failure_recorder import FailureRecord, FailureRecorder
from .llm_provider import AnthropicProvider, BaseLLMProvider, LLMFailure, LLMResponse, get_llm_provider, is_configured
from .response_parser import extract_json, parse_schedule_response
from .schedule_generator import generate_schedule

__all__ = [
    "FailureRecord",
    "FailureRecorder",
    "AnthropicProvider",
    "BaseLLMProvider",
    "LLMFailure",
    "LLMResponse",
    "get_llm_provider",
    "is_configured",
    "extract_json",
    "parse_schedule_response",
    "generate_schedule",
]

"""Model registry — maps friendly model names to provider model identifiers.

Unknown names never fail: they resolve to DEFAULT_MODEL.
"""

from types import MappingProxyType

GPT432K0613 = "gpt-4-32k-0613"
GPT432K0314 = "gpt-4-32k-0314"
GPT432K = "gpt-4-32k"
GPT40613 = "gpt-4-0613"
GPT40314 = "gpt-4-0314"
GPT4 = "gpt-4"
GPT3DOT5TURBO0613 = "gpt-3.5-turbo-0613"
GPT3DOT5TURBO0301 = "gpt-3.5-turbo-0301"
GPT3DOT5TURBO16K = "gpt-3.5-turbo-16k"
GPT3DOT5TURBO16K0613 = "gpt-3.5-turbo-16k-0613"
GPT3DOT5TURBO = "gpt-3.5-turbo"
GPT3DOT5TURBOINSTRUCT = "gpt-3.5-turbo-instruct"
GPT3DAVINCI = "davinci"
GPT3DAVINCI002 = "davinci-002"
GPT3CURIE = "curie"
GPT3CURIE002 = "curie-002"
GPT3ADA = "ada"
GPT3ADA002 = "ada-002"
GPT3BABBAGE = "babbage"
GPT3BABBAGE002 = "babbage-002"

DEFAULT_MODEL = GPT3DOT5TURBO

MODEL_MAP = MappingProxyType({
    "gpt-4-32k-0613": GPT432K0613,
    "gpt-4-32k-0314": GPT432K0314,
    "gpt-4-32k": GPT432K,
    "gpt-4-0613": GPT40613,
    "gpt-4-0314": GPT40314,
    "gpt-4": GPT4,
    "gpt-3.5-turbo-0613": GPT3DOT5TURBO0613,
    "gpt-3.5-turbo-0301": GPT3DOT5TURBO0301,
    "gpt-3.5-turbo-16k": GPT3DOT5TURBO16K,
    "gpt-3.5-turbo-16k-0613": GPT3DOT5TURBO16K0613,
    "gpt-3.5-turbo": GPT3DOT5TURBO,
    "gpt-3.5-turbo-instruct": GPT3DOT5TURBOINSTRUCT,
    "davinci": GPT3DAVINCI,
    "davinci-002": GPT3DAVINCI002,
    "curie": GPT3CURIE,
    "curie-002": GPT3CURIE002,
    "ada": GPT3ADA,
    "ada-002": GPT3ADA002,
    "babbage": GPT3BABBAGE,
    "babbage-002": GPT3BABBAGE002,
})

# Served by the chat endpoint; everything else goes to legacy completions.
CHAT_MODELS = frozenset({
    GPT3DOT5TURBO,
    GPT3DOT5TURBO0301,
    GPT3DOT5TURBO0613,
    GPT3DOT5TURBO16K,
    GPT3DOT5TURBO16K0613,
    GPT4,
    GPT40314,
    GPT40613,
    GPT432K,
    GPT432K0314,
    GPT432K0613,
})

# The 0613 snapshots accept function definitions on the chat endpoint.
FUNCTION_CALL_MODELS = frozenset({
    GPT432K0613,
    GPT40613,
    GPT3DOT5TURBO0613,
    GPT3DOT5TURBO16K0613,
})


def resolve(name: str) -> str:
    """Return the model identifier for a friendly name, or DEFAULT_MODEL if unknown."""
    return MODEL_MAP.get(name, DEFAULT_MODEL)


get_model = resolve


def is_chat_model(model: str) -> bool:
    return model in CHAT_MODELS


def supports_function_call(model: str) -> bool:
    return model in FUNCTION_CALL_MODELS

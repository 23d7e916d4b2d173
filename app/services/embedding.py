"""
Embedding generation service using OpenAI.

Features:
- Query embeddings for semantic message search
- Batch embeddings and token-limit truncation for the embedding backfill
- Retry with exponential backoff and jitter (backfill only; search never retries)
- Cost and usage logging
"""

import asyncio
import random
from datetime import datetime
from typing import List

import tiktoken
from openai import APIConnectionError, APIError, APITimeoutError, AsyncOpenAI, RateLimitError

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

_openai_client: AsyncOpenAI | None = None

# USD per token
EMBEDDING_MODEL_PRICING = {
    "text-embedding-3-small": 0.00000002,
    "text-embedding-3-large": 0.00000013,
    "text-embedding-ada-002": 0.0000001,
}

# OpenAI accepts at most 2048 inputs per embeddings request
MAX_BATCH_INPUTS = 2048


def _get_openai_client() -> AsyncOpenAI:
    """Get or create the OpenAI async client."""
    global _openai_client
    if _openai_client is None:
        _openai_client = AsyncOpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.openai_timeout_seconds,
        )
        logger.info("OpenAI embeddings client initialized")
    return _openai_client


def _calculate_cost(token_count: int, model: str) -> float:
    cost_per_token = EMBEDDING_MODEL_PRICING.get(model)
    if cost_per_token is None:
        logger.warning(f"Unknown model '{model}', using text-embedding-3-small pricing as fallback")
        cost_per_token = EMBEDDING_MODEL_PRICING["text-embedding-3-small"]
    return token_count * cost_per_token


def _log_usage(operation: str, tokens: int, duration_ms: float) -> None:
    cost = _calculate_cost(tokens, settings.openai_embedding_model)
    logger.info(
        f"Embedding usage: operation={operation} tokens={tokens} "
        f"cost_usd={cost:.6f} duration_ms={duration_ms:.2f}"
    )


def _sanitize(text: str) -> str:
    """Newlines degrade embedding quality for short chat messages."""
    return text.replace("\n", " ")


def count_tokens(text: str, model: str = "text-embedding-3-small") -> int:
    """
    Count tokens in text.

    Falls back to a ~4 characters per token estimate if the tokenizer
    cannot be loaded.
    """
    try:
        encoding = tiktoken.encoding_for_model(model)
        return len(encoding.encode(text))
    except Exception as e:
        logger.warning(f"Token counting failed: {e}, using rough estimate")
        return len(text) // 4


def truncate_to_token_limit(text: str, max_tokens: int | None = None) -> str:
    """
    Trim text so it fits the embedding model's input limit.

    Args:
        text: Input text
        max_tokens: Token budget (defaults to settings.openai_embedding_max_tokens)

    Returns:
        The text, cut at a token boundary if it was too long
    """
    max_tokens = max_tokens or settings.openai_embedding_max_tokens
    try:
        encoding = tiktoken.encoding_for_model(settings.openai_embedding_model)
    except Exception as e:
        logger.warning(f"Tokenizer unavailable ({e}), truncating by characters")
        return text[: max_tokens * 4]

    tokens = encoding.encode(text)
    if len(tokens) <= max_tokens:
        return text

    logger.debug(f"Truncating embedding input from {len(tokens)} to {max_tokens} tokens")
    return encoding.decode(tokens[:max_tokens])


async def generate_embedding(text: str) -> List[float]:
    """
    Generate an embedding for a single text.

    Args:
        text: Input text to embed

    Returns:
        Embedding vector (settings.openai_embedding_dimensions floats)
    """
    start_time = datetime.now()

    try:
        client = _get_openai_client()
        response = await client.embeddings.create(
            model=settings.openai_embedding_model,
            input=_sanitize(text),
            dimensions=settings.openai_embedding_dimensions,
            encoding_format="float",
        )
        embedding = response.data[0].embedding

        duration_ms = (datetime.now() - start_time).total_seconds() * 1000
        _log_usage("generate_embedding", response.usage.total_tokens, duration_ms)

        return embedding

    except Exception as e:
        logger.error(f"Embedding generation failed: {e}")
        raise


async def generate_embeddings_batch(texts: List[str]) -> List[List[float]]:
    """
    Generate embeddings for many texts, chunked to the API's input limit.

    Each text is truncated to the model's token limit first.

    Returns:
        Embedding vectors in input order
    """
    if not texts:
        return []

    start_time = datetime.now()
    client = _get_openai_client()
    prepared = [truncate_to_token_limit(_sanitize(text)) for text in texts]

    all_embeddings: List[List[float]] = []
    total_tokens = 0

    try:
        for i in range(0, len(prepared), MAX_BATCH_INPUTS):
            batch = prepared[i : i + MAX_BATCH_INPUTS]
            response = await client.embeddings.create(
                model=settings.openai_embedding_model,
                input=batch,
                dimensions=settings.openai_embedding_dimensions,
                encoding_format="float",
            )
            # The API may return items out of order
            ordered = sorted(response.data, key=lambda item: item.index)
            all_embeddings.extend(item.embedding for item in ordered)
            total_tokens += response.usage.total_tokens

    except Exception as e:
        logger.error(f"Batch embedding generation failed: {e}")
        raise

    duration_ms = (datetime.now() - start_time).total_seconds() * 1000
    _log_usage("generate_embeddings_batch", total_tokens, duration_ms)
    return all_embeddings


async def generate_embedding_with_retry(text: str, max_retries: int = 3) -> List[float]:
    """
    Generate an embedding, retrying transient API failures.

    Rate limits back off 4s/8s/16s, connection errors and 5xx 1s/2s/4s,
    all with jitter. Client errors (4xx) are not retried.

    Raises:
        The last error once retries are exhausted
    """
    text = truncate_to_token_limit(text)

    for attempt in range(max_retries):
        try:
            return await generate_embedding(text)

        except RateLimitError as e:
            if attempt == max_retries - 1:
                logger.error(f"Rate limit hit after {max_retries} attempts: {e}")
                raise
            wait_time = 2 ** (attempt + 2) + random.uniform(0, 1)
            logger.warning(
                f"Rate limit hit (attempt {attempt + 1}/{max_retries}), retrying in {wait_time:.2f}s"
            )

        except (APIConnectionError, APITimeoutError) as e:
            if attempt == max_retries - 1:
                logger.error(f"Connection/timeout error after {max_retries} attempts: {e}")
                raise
            wait_time = 2**attempt + random.uniform(0, 0.5)
            logger.warning(
                f"Connection error (attempt {attempt + 1}/{max_retries}), "
                f"retrying in {wait_time:.2f}s: {e}"
            )

        except APIError as e:
            status_code = getattr(e, "status_code", None)
            if attempt == max_retries - 1 or status_code is None or not 500 <= status_code < 600:
                logger.error(f"Non-retryable or exhausted API error: {e}")
                raise
            wait_time = 2**attempt + random.uniform(0, 0.5)
            logger.warning(
                f"Server error {status_code} (attempt {attempt + 1}/{max_retries}), "
                f"retrying in {wait_time:.2f}s"
            )

        await asyncio.sleep(wait_time)

    raise RuntimeError("max_retries must be at least 1")

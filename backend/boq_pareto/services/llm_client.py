"""
LLM Client Abstraction
Single entry point for the AI calls behind value-engineering suggestions.
Primary and fallback models are configurable; litellm routes to the provider.
"""
import logging

import litellm

from boq_pareto.config import LLM_FALLBACK_MODEL, LLM_PRIMARY_MODEL

logger = logging.getLogger("boq-pareto-llm")

# Suppress litellm verbose logging
litellm.set_verbose = False


async def complete(
    messages: list,
    temperature: float = 0.5,
    json_mode: bool = False,
    max_tokens: int = 800,
) -> str:
    """
    Call the primary LLM. Falls back to the secondary model on rate limit or error.
    Returns the response content string.
    """
    kwargs = {
        "messages": messages,
        "temperature": temperature,
        "max_tokens": max_tokens,
    }
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}

    try:
        response = await litellm.acompletion(model=LLM_PRIMARY_MODEL, **kwargs)
        return response.choices[0].message.content
    except litellm.RateLimitError:
        logger.warning("Primary LLM rate limit hit — falling back")
    except litellm.AuthenticationError:
        logger.warning("Primary LLM auth error — falling back")
    except Exception as e:
        logger.warning(f"Primary LLM error ({type(e).__name__}: {e}) — falling back")

    try:
        fallback_kwargs = {k: v for k, v in kwargs.items() if k != "response_format"}
        if json_mode:
            messages = [dict(m) for m in fallback_kwargs["messages"]]
            if messages and messages[0]["role"] == "system":
                messages[0]["content"] += "\n\nIMPORTANT: Respond with valid JSON only."
            else:
                messages = [{"role": "system", "content": "You must respond with valid JSON only."}] + messages
            fallback_kwargs["messages"] = messages
        response = await litellm.acompletion(model=LLM_FALLBACK_MODEL, **fallback_kwargs)
        return response.choices[0].message.content
    except Exception as e:
        logger.error(f"Both LLMs failed. Fallback error: {e}")
        raise RuntimeError(f"All LLM providers failed. Last error: {e}")


class LLMClient:
    """Class-based wrapper around ``complete()`` so services can take an injectable client."""

    async def chat(
        self,
        messages: list,
        temperature: float = 0.5,
        json_mode: bool = False,
        max_tokens: int = 800,
    ) -> str:
        return await complete(messages, temperature=temperature, json_mode=json_mode, max_tokens=max_tokens)


def get_system_prompt(role: str) -> str:
    prompts = {
        "value_engineer": (
            "You are a construction cost optimization assistant. Propose value engineering (VE) "
            "alternatives that preserve functionality while reducing cost, tailored to the given "
            "work category (structure, finishing, MEP, other). Give diverse, category-specific "
            "suggestions and keep safety and code compliance intact."
        ),
    }
    return prompts.get(role, prompts["value_engineer"])

"""
services/chat_relay.py

Chat relay: wraps the user's message in the Zero1 persona prompt and
few-shot examples, sends it to the LLM server, and returns the reply text.

Supports:
  - Ollama native   POST {LLM_SERVER_URL}/api/chat        (httpx)
  - OpenAI-compatible chat completions at LLM_SERVER_URL  (openai SDK)

One attempt per request. No retries, no streaming.
"""

import time
from typing import Any, Optional

import httpx
import openai
from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion

from relay.core.config import Settings
from relay.core.errors import InvalidResponse, Misconfigured, NetworkFailure, UpstreamError
from relay.core.logger import get_logger

logger = get_logger(__name__)

SYSTEM_PROMPT = """You are "ZeroOne Dialect AI" — a multilingual customer service agent for the Singapore telco Zero1.

Your job:
- Understand and reply in the SAME language or dialect the user uses.
- Supported languages and dialects: English, Singlish, Mandarin, Hokkien, Cantonese, Teochew.
- If the user mixes languages (very common in Singapore), reply naturally in mixed language too.

Singlish style (very important):
- Use natural Singapore Singlish, not American or Jamaican slang.
- Do NOT use words like "yuh", "ya mon", "mate", or Caribbean-style English.
- Use common Singlish particles like "lah", "lor", "leh", "mah", "meh", "ah", "hor" in a natural way.
- Use "you" or "u" (not "yuh"), and simple short sentences.
- "meh" is usually used at the END of a question, not at the beginning of a sentence.
- Overall tone should feel like a friendly Singapore CS agent chatting with a customer.

Tone:
- Friendly, concise, helpful.
- Sound like a real Singapore telco customer service agent.
- Keep answers short and practical (2–4 short sentences usually enough).

Rules:
- Do not hallucinate technical info.
- If unsure, give the safest, standard telco explanation.
- Always match the user's language, dialect, and tone.

Common telco topics you should handle:
- Bill suddenly higher than usual
- Data usage exceeded
- Roaming charges
- Plan upgrade or downgrade
- Contract / SIM card / activation issues
- Slow network or poor coverage
- Payment method / invoice questions

Dialect behaviour:
- For Hokkien: use simple vocabulary, Singapore-style expressions (e.g. "bo lah", "jialat", "kan cheong").
- For Cantonese: Hong Kong / Singapore mix is OK, but keep it simple.
- For Teochew: simple Teochew phrases mixed with Mandarin is OK.
- For Singlish: natural, short, casual, like how people talk in Singapore.

If the user says: "explain in Hokkien / Cantonese / Teochew", follow their request.

If the user speaks English or Mandarin, reply in the same language unless they request otherwise."""

# Steers Singlish register and telco framing on every request
FEW_SHOT_MESSAGES: list[dict[str, str]] = [
    {"role": "user", "content": "Why my bill so high one?"},
    {
        "role": "assistant",
        "content": (
            "This month your usage a bit higher lah. You used more data and a few extra calls, "
            "so the bill go up. You can check the itemised bill to see which part increase the most."
        ),
    },
    {"role": "user", "content": "Eh my data finish so fast, what happen ah?"},
    {
        "role": "assistant",
        "content": (
            "Maybe got more video or hotspot this month lor. Once you pass the bundle, extra data "
            "will charge by rate. Next time can consider bigger plan or set data alert, so you know "
            "before it burst."
        ),
    },
    {"role": "user", "content": "Can explain to me in Singlish, not so formal?"},
    {
        "role": "assistant",
        "content": (
            "Can lah. I just explain properly but still in Singlish style. Main thing is you "
            "understand what happen to your bill and data usage, okay?"
        ),
    },
]

FALLBACK_REPLY = "Sorry, I am temporarily unable to respond. Please try again later."


def language_hint(language: Optional[str]) -> str:
    if language and language != "auto":
        return (
            f"User selected language/dialect: {language}. "
            "Reply in this language or dialect if possible."
        )
    return "User language may change; auto-detect and match the user."


def build_messages(message: str, language: Optional[str] = None) -> list[dict[str, str]]:
    msgs = [{"role": "system", "content": SYSTEM_PROMPT + "\n\n" + language_hint(language)}]
    msgs.extend(FEW_SHOT_MESSAGES)
    msgs.append({"role": "user", "content": message})
    return msgs


def extract_path(data: Any, path: str) -> Any:
    """
    Walk a dotted path through nested dicts/lists.
    "message.content" or "choices.0.message.content". Missing -> None.
    """
    node = data
    for part in path.split("."):
        if isinstance(node, dict):
            node = node.get(part)
        elif isinstance(node, list) and part.isdigit() and int(part) < len(node):
            node = node[int(part)]
        else:
            return None
        if node is None:
            return None
    return node


class ChatRelay:
    def __init__(self, cfg: Settings, http: httpx.AsyncClient):
        self.cfg = cfg
        self.http = http

    async def reply(self, message: str, language: Optional[str] = None) -> str:
        if not self.cfg.llm_configured:
            raise Misconfigured("LLM_SERVER_URL is not configured")

        t0 = time.perf_counter()
        messages = build_messages(message, language)

        if self.cfg.LLM_PROVIDER == "openai":
            content = await self._call_openai(messages)
        else:
            content = await self._call_ollama(messages)

        latency_ms = int((time.perf_counter() - t0) * 1000)

        if not isinstance(content, str) or not content:
            logger.warning(f"LLM reply missing [{latency_ms}ms] model={self.cfg.LLM_MODEL_NAME}; using fallback")
            return FALLBACK_REPLY

        logger.info(f"LLM reply [{latency_ms}ms] model={self.cfg.LLM_MODEL_NAME}: {content[:120]!r}")
        return content

    async def _call_ollama(self, messages: list[dict[str, str]]) -> Any:
        payload = {
            "model": self.cfg.LLM_MODEL_NAME,
            "stream": False,
            "messages": messages,
        }
        url = f"{self.cfg.llm_base_url}/api/chat"

        try:
            res = await self.http.post(url, json=payload)
        except httpx.TransportError as e:
            logger.error(f"LLM unreachable at {url}: {type(e).__name__}: {e}")
            raise NetworkFailure("LLM server unreachable", detail=str(e) or type(e).__name__)

        if res.is_error:
            logger.error(f"LLM error {res.status_code}: {res.text[:300]}")
            raise UpstreamError("LLM server error", detail=res.text)

        try:
            data = res.json()
        except ValueError:
            logger.error(f"LLM returned non-JSON body: {res.text[:300]}")
            raise InvalidResponse("Invalid response from LLM server")

        return extract_path(data, self.cfg.LLM_REPLY_PATH)

    async def _call_openai(self, messages: list[dict[str, str]]) -> Optional[str]:
        client = AsyncOpenAI(
            api_key=self.cfg.LLM_API_KEY or "none",
            base_url=self.cfg.llm_base_url,
            http_client=self.http,
            timeout=self.cfg.UPSTREAM_TIMEOUT,
            max_retries=0,
        )

        try:
            completion = await client.chat.completions.create(
                model=self.cfg.LLM_MODEL_NAME,
                messages=messages,
                stream=False,
            )
        except openai.APIStatusError as e:
            logger.error(f"LLM error {e.status_code}: {e.response.text[:300]}")
            raise UpstreamError("LLM server error", detail=e.response.text)
        except openai.APIResponseValidationError as e:
            logger.error(f"LLM returned unexpected body: {e.response.text[:300]}")
            raise InvalidResponse("Invalid response from LLM server")
        except openai.APIConnectionError as e:
            logger.error(f"LLM unreachable at {self.cfg.llm_base_url}: {e}")
            raise NetworkFailure("LLM server unreachable", detail=str(e))

        # Non-JSON 2xx bodies come back from the SDK as a plain str
        if not isinstance(completion, ChatCompletion):
            logger.error(f"LLM returned non-JSON body: {str(completion)[:300]}")
            raise InvalidResponse("Invalid response from LLM server")

        if not completion.choices:
            return None
        return completion.choices[0].message.content

"""
Chat proxy for the storefront assistant.

A message is answered by the language model when an API key is configured and
the call returns text; in every other case a canned, keyword-matched reply is
used instead. Callers get one of two result types and never an exception.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "Eres el asistente virtual de Level Up PC."

# (triggers, reply) checked in order; first substring match wins
FALLBACK_RULES: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("precio",), "Puedes ver los precios actualizados en la sección 'Lista de Precios'."),
    (("procesador",), "Tenemos procesadores Intel y AMD de última generación. ¿Para gaming o trabajo?"),
    (("gpu", "gráfica"), "Contamos con tarjetas NVIDIA y AMD. ¿Qué presupuesto manejas?"),
)
DEFAULT_REPLY = "Hola 👋 Soy el asistente de Level Up PC. ¿Qué componente estás buscando hoy?"


@dataclass(frozen=True)
class LiveReply:
    text: str


@dataclass(frozen=True)
class FallbackReply:
    text: str
    reason: str


ChatReply = Union[LiveReply, FallbackReply]


def fallback_reply(message: Optional[str]) -> str:
    msg = (message or "").strip().lower()
    for triggers, reply in FALLBACK_RULES:
        if any(t in msg for t in triggers):
            return reply
    return DEFAULT_REPLY


class ChatResponder:
    def __init__(self, client: Optional[AsyncOpenAI], model: str = "gpt-4o-mini"):
        self.client = client
        self.model = model

    def _fallback(self, message: str, reason: str) -> FallbackReply:
        logger.info("Chat answered from fallback (%s)", reason)
        return FallbackReply(fallback_reply(message), reason)

    async def reply(self, message: str) -> ChatReply:
        if self.client is None:
            return self._fallback(message, "no_api_key")
        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": message},
                ],
            )
            text = (completion.choices[0].message.content or "").strip()
        except Exception as e:
            # any upstream failure degrades to the scripted reply
            logger.error("Chat provider error type=%s msg=%s", type(e).__name__, e)
            return self._fallback(message, "provider_error")
        if not text:
            return self._fallback(message, "empty_completion")
        return LiveReply(text)

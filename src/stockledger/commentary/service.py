from __future__ import annotations

import logging

from stockledger.commentary.gateway import LLMGateway
from stockledger.models.financials import FinancialHistory, dumps
from stockledger.registry.queries import Registry

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an equity analyst reviewing a company's multi-year financial "
    "statements. Figures are keyed by fiscal year-end date; monetary values are "
    "in the company's reporting currency. Answer the question concisely, cite the "
    "years you rely on and do not invent figures that are not in the data."
)


def build_user_prompt(prompt: str, history: FinancialHistory) -> str:
    data = dumps(history.to_dict(), indent=2, sort_keys=True)
    return f"{prompt}\n\nFinancial data:\n```json\n{data}\n```"


class CommentaryService:
    """Generates and stores AI commentary for a stock's financial history."""

    def __init__(
        self,
        registry: Registry,
        gateway: LLMGateway,
        provider: str = "deepseek",
        model: str | None = None,
        max_tokens: int = 2048,
    ) -> None:
        self._registry = registry
        self._gateway = gateway
        self._provider = provider
        self._model = model or None
        self._max_tokens = max_tokens

    def list_prompts(self) -> dict[str, str]:
        return self._registry.get_prompts()

    def get_responses(self, stock_id: int) -> dict[str, str]:
        return self._registry.get_prompt_responses(stock_id)

    async def generate(
        self, stock_id: int, prompt_id: str, history: FinancialHistory
    ) -> str:
        """Answer one prompt against ``history`` and store the response.

        Raises KeyError when ``prompt_id`` is not a known prompt.
        """
        prompts = self.list_prompts()
        if prompt_id not in prompts:
            raise KeyError(f"Unknown prompt: {prompt_id}")

        logger.info(
            "Generating %s for stock %s via %s (%d years)",
            prompt_id,
            stock_id,
            self._provider,
            len(history),
        )
        response = await self._gateway.call(
            provider=self._provider,
            system_prompt=SYSTEM_PROMPT,
            user_prompt=build_user_prompt(prompts[prompt_id], history),
            model=self._model,
            max_tokens=self._max_tokens,
        )
        self._registry.save_prompt_response(
            stock_id,
            prompt_id,
            response.content,
            provider=response.provider,
            model=response.model,
        )
        return response.content

    async def generate_missing(
        self, stock_id: int, history: FinancialHistory
    ) -> dict[str, str]:
        """Answer, one at a time, every prompt that has no stored response yet."""
        existing = self.get_responses(stock_id)
        generated: dict[str, str] = {}
        for prompt_id in self.list_prompts():
            if existing.get(prompt_id):
                continue
            generated[prompt_id] = await self.generate(stock_id, prompt_id, history)
        if not generated:
            logger.info("All prompts already answered for stock %s", stock_id)
        return generated

"""
Review Generation - Draft Review Text for Customers
===================================================

Flow: stored AI settings → GAS survey samples → composite prompt → Gemini
→ generated text plus the Google Maps link the customer should post it to.

Each generator page (page1/page2/page3) may override the GAS URL and base
prompt through the ``prompts`` section of the configuration; anything it
leaves empty falls back to ``aiSettings``.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional

from ..domain import ValidationError
from ..infrastructure.llm import GeminiClient
from ..infrastructure.persistence import ConfigRepository
from ..infrastructure.sampling import GasSampleClient

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = (
    "次のアンケート回答を参考に、100〜200文字程度の口コミを丁寧な日本語で作成してください。"
    "語尾や表現は自然で温かみのあるものにしてください。"
)


def _format_sample(index: int, item: Any) -> Optional[str]:
    if isinstance(item, str):
        return f"- サンプル{index + 1}: {item}"
    if isinstance(item, dict):
        values = item.values()
    elif isinstance(item, list):
        values = item
    else:
        return None
    return f"- サンプル{index + 1}: " + " / ".join(str(value) for value in values if value)


def build_prompt(prompt: str, samples: List[Any]) -> str:
    """
    Base instruction followed by numbered reference samples.

    String samples are used as-is, rows (objects) render their non-empty
    values joined by " / ", anything else is skipped. Numbering follows the
    sample's position, so skipped samples leave gaps.
    """
    base = prompt or DEFAULT_PROMPT
    lines = [_format_sample(index, item) for index, item in enumerate(samples)]
    formatted = "\n".join(line for line in lines if line)
    return f"{base}\n\n参考データ:\n{formatted}"


@dataclass(frozen=True)
class GenerationResult:
    text: str
    maps_link: str
    gas_url: str
    prompt: str
    prompt_key: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "text": self.text,
            "mapsLink": self.maps_link,
            "aiSettings": {
                "mapsLink": self.maps_link,
                "gasUrl": self.gas_url,
                "prompt": self.prompt,
            },
        }
        if self.prompt_key:
            data["promptKey"] = self.prompt_key
        return data


class GenerationService:
    """
    Generates review drafts from the stored AI settings.

    USAGE:
        service = GenerationService(repository)
        result = service.generate(prompt_key="page2")
        print(result.text)
    """

    def __init__(
        self,
        repository: ConfigRepository,
        sample_client: Optional[GasSampleClient] = None,
        gemini_client: Optional[GeminiClient] = None,
        sample_limit: int = 5,
    ):
        self._repository = repository
        self._samples = sample_client or GasSampleClient()
        self._gemini = gemini_client or GeminiClient()
        self._sample_limit = sample_limit

    def generate(
        self,
        prompt_key: Optional[str] = None,
        tier: Optional[str] = None,
        model: Optional[str] = None,
    ) -> GenerationResult:
        """
        Draft a review.

        Args:
            prompt_key: Generator page whose prompt overrides apply (page1..page3).
            tier: Tier the customer came from; informational only.
            model: Per-request model override.

        Raises:
            ValidationError: API key or GAS URL is not configured.
            UpstreamError: GAS or Gemini failed, or no text came back.
        """
        config = self._repository.load_or_default()
        ai = config.ai_settings

        api_key = ai.gemini_api_key.strip()
        gas_url = ai.gas_url.strip()
        prompt = ai.prompt.strip()
        maps_link = ai.maps_link.strip()

        override = config.prompts.get(prompt_key) if prompt_key else None
        if override is not None:
            gas_url = override.gas_url.strip() or gas_url
            prompt = override.prompt.strip() or prompt
        elif prompt_key:
            logger.debug(f"Unknown prompt key {prompt_key!r}, using shared AI settings")

        if not api_key:
            raise ValidationError("Gemini APIキーが設定されていません。")
        if not gas_url:
            raise ValidationError("GASアプリURLが設定されていません。")

        samples = self._samples.fetch_samples(gas_url)
        full_prompt = build_prompt(prompt, samples[:self._sample_limit])

        chosen_model = (model or "").strip() or ai.model.strip() or None
        logger.info(
            f"Generating review (page={prompt_key or '-'}, tier={tier or '-'}, "
            f"samples={min(len(samples), self._sample_limit)})"
        )
        text = self._gemini.generate(full_prompt, api_key=api_key, model=chosen_model)

        return GenerationResult(
            text=text,
            maps_link=maps_link,
            gas_url=gas_url,
            prompt=prompt,
            prompt_key=prompt_key if override is not None else None,
        )

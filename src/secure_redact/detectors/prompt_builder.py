"""Prompt building strategy for vision-model PII detection."""

import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Sequence

from ..models.entities import DEFAULT_CATEGORY_DEFINITIONS, PageRaster, PiiCategory


@dataclass
class PromptContext:
    """Everything needed for one detector API call."""

    messages: List[dict]
    keywords: List[str]


def normalize_keywords(
    keywords: Sequence[str], categories: Iterable[PiiCategory]
) -> List[str]:
    """Deduplicate keywords for the prompt.

    Comparison is case-insensitive and the first spelling wins. Keywords that
    merely repeat an enabled category name are dropped.
    """
    category_names = {c.value.lower() for c in categories}
    category_names |= {c.value.lower().replace("_", " ") for c in categories}
    seen = set()
    result = []
    for keyword in keywords:
        cleaned = keyword.strip()
        key = cleaned.lower()
        if not cleaned or key in seen or key in category_names:
            continue
        seen.add(key)
        result.append(cleaned)
    return result


class BasePromptBuilder(ABC):
    """Interface for prompt construction strategies."""

    @abstractmethod
    def build(
        self,
        page: PageRaster,
        categories: List[PiiCategory],
        keywords: Sequence[str] = (),
    ) -> PromptContext:
        """Build API messages for a single page image."""


class DefaultPromptBuilder(BasePromptBuilder):
    """Builds the bounding-box PII detection prompt."""

    def build(
        self,
        page: PageRaster,
        categories: List[PiiCategory],
        keywords: Sequence[str] = (),
    ) -> PromptContext:
        category_lines = []
        for cat in categories:
            definition = DEFAULT_CATEGORY_DEFINITIONS[cat]
            category_lines.append(
                f"- {cat.value}: {definition['display']}. {definition['desc']} "
                f"(e.g., {definition['example']})"
            )
        category_text = "\n".join(category_lines) or "- (no categories selected)"
        category_ids = "|".join(c.value for c in PiiCategory)

        prompt_keywords = normalize_keywords(keywords, categories)

        system_prompt = f"""You are a PII detector for scanned and rendered document pages.
You receive one page as an image. Locate every piece of personally identifiable information on it.

PII CATEGORIES TO DETECT:
{category_text}

RULES:
1. Report the exact text as it appears on the page.
2. Give a tight bounding box [ymin, xmin, ymax, xmax] around the text, with every
   coordinate normalized to 0-1000 relative to the page height (y) and width (x).
3. The box must cover only the sensitive text, not its label or surrounding whitespace.
4. Use one of these category labels: {category_ids}. Use OTHER for custom keywords
   that fit no category.
5. Report each occurrence separately.

Respond with a JSON object in this exact format:
{{
  "detections": [
    {{"text": "exact text", "category": "NAME", "box_2d": [ymin, xmin, ymax, xmax]}}
  ]
}}

If nothing is found, respond with: {{"detections": []}}"""

        user_text = f"Analyze page {page.page_number} for PII."
        if prompt_keywords:
            user_text += (
                " Additionally, specifically look for these keywords: "
                + ", ".join(prompt_keywords)
                + "."
            )
        user_text += " Return the results as JSON."

        encoded = base64.b64encode(page.image_data).decode("ascii")
        user_content = [
            {"type": "text", "text": user_text},
            {
                "type": "image_url",
                "image_url": {"url": f"data:{page.mime_type};base64,{encoded}"},
            },
        ]

        return PromptContext(
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            keywords=prompt_keywords,
        )

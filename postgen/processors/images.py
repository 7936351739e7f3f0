from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..models import TopicRecord
from ..utils.logging import get_logger
from .ai import ImageGenerator

logger = get_logger("postgen.processors.images")

HERO_FILENAME = "hero.webp"
PLACEHOLDER_SOURCE = "placeholder"

PLACEHOLDER_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="1600" height="900" viewBox="0 0 1600 900">
  <defs>
    <linearGradient id="g" x1="0%" y1="0%" x2="100%" y2="100%">
      <stop offset="0%" style="stop-color:#0077b6"/>
      <stop offset="50%" style="stop-color:#00b4d8"/>
      <stop offset="100%" style="stop-color:#90e0ef"/>
    </linearGradient>
  </defs>
  <rect width="1600" height="900" fill="url(#g)"/>
  <circle cx="1300" cy="200" r="80" fill="#f4e8c1" opacity="0.6"/>
  <path d="M200 700 Q400 500 600 650 Q800 800 1000 600 Q1200 400 1400 550 L1600 650 L1600 900 L0 900 L0 750 Z" fill="rgba(255,255,255,0.15)"/>
  <path d="M0 800 Q200 700 400 780 Q600 860 800 750 Q1000 640 1200 730 Q1400 820 1600 760 L1600 900 L0 900 Z" fill="rgba(255,255,255,0.1)"/>
  <path d="M700 350 L700 650 M700 350 C700 350 850 400 850 500 L700 500" fill="none" stroke="rgba(255,255,255,0.4)" stroke-width="4"/>
</svg>
"""


@dataclass(slots=True)
class HeroImage:
    path: Path
    source: str

    @property
    def is_placeholder(self) -> bool:
        return self.source == PLACEHOLDER_SOURCE


def full_image_prompt(topic: TopicRecord) -> str:
    return (
        "Generate a beautiful, photorealistic image for a blog article. The image should be:\n"
        "- Wide format (16:9 aspect ratio)\n"
        f"- {topic.image_prompt}\n"
        "- Bright, coastal colors (ocean blue, white, golden hour light)\n"
        "- Professional quality, magazine-style photography\n"
        "- No text overlays"
    )


def simple_image_prompt(topic: TopicRecord) -> str:
    return f"Photorealistic wide photo: {topic.image_prompt}. No text."


def _attempts(clients: Sequence[ImageGenerator], topic: TopicRecord) -> List[Tuple[ImageGenerator, str]]:
    if not clients:
        return []
    primary, rest = clients[0], clients[1:]
    plan = [(primary, full_image_prompt(topic)), (primary, simple_image_prompt(topic))]
    plan.extend((client, full_image_prompt(topic)) for client in rest)
    return plan


def _try(client: ImageGenerator, prompt: str) -> Optional[bytes]:
    try:
        data = client.generate(prompt)
    except Exception as exc:  # noqa: BLE001
        logger.warning("Image client %s failed: %s", client.name, exc)
        return None
    if not data:
        logger.info("Image client %s returned no image", client.name)
        return None
    return data


def write_placeholder(out_dir: Path) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / HERO_FILENAME
    path.write_text(PLACEHOLDER_SVG, encoding="utf-8")
    return path


def acquire_hero_image(
    clients: Sequence[ImageGenerator],
    topic: TopicRecord,
    out_dir: Path,
) -> HeroImage:
    """Produce ``hero.webp`` in ``out_dir``; always succeeds.

    The primary client is tried with the full prompt, then once more with a
    simplified one; remaining clients get one attempt each; the vector
    placeholder is written last.
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / HERO_FILENAME
    for client, prompt in _attempts(clients, topic):
        data = _try(client, prompt)
        if data is None:
            continue
        path.write_bytes(data)
        logger.info("Hero image generated (%s)", client.name)
        return HeroImage(path=path, source=client.name)

    logger.info("Writing placeholder hero image for '%s'", topic.slug)
    return HeroImage(path=write_placeholder(out_dir), source=PLACEHOLDER_SOURCE)

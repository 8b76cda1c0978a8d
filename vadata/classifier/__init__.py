"""Speaker classifier: swappable LLM backends for mislabeled-utterance correction."""
from __future__ import annotations

from vadata.classifier.base import SpeakerClassifier, build_prompt, parse_speaker_choices
from vadata.classifier.cloudflare import CloudflareChatClassifier
from vadata.classifier.openai_chat import OpenAIChatClassifier
from vadata.config import Settings


def create_speaker_classifier(settings: Settings) -> SpeakerClassifier:
    """Classifier for CLASSIFIER_BACKEND, with credentials taken from settings."""
    if settings.CLASSIFIER_BACKEND == "cloudflare":
        return CloudflareChatClassifier(
            account_id=settings.CLOUDFLARE_ACCOUNT_ID,
            api_token=settings.CLOUDFLARE_API_TOKEN,
            model=settings.CLOUDFLARE_MODEL,
            max_tokens=settings.CLASSIFIER_MAX_TOKENS,
            timeout=settings.CLASSIFIER_TIMEOUT_SEC,
            max_attempts=settings.CLASSIFIER_MAX_ATTEMPTS,
            retry_base_delay=settings.RETRY_BASE_DELAY_SEC,
        )
    return OpenAIChatClassifier(
        api_key=settings.OPENAI_API_KEY,
        model=settings.CLASSIFIER_MODEL,
        base_url=settings.OPENAI_BASE_URL,
        max_tokens=settings.CLASSIFIER_MAX_TOKENS,
        timeout=settings.CLASSIFIER_TIMEOUT_SEC,
        max_attempts=settings.CLASSIFIER_MAX_ATTEMPTS,
        retry_base_delay=settings.RETRY_BASE_DELAY_SEC,
    )


__all__ = [
    "SpeakerClassifier",
    "OpenAIChatClassifier",
    "CloudflareChatClassifier",
    "build_prompt",
    "create_speaker_classifier",
    "parse_speaker_choices",
]

"""Application configuration. Loads from env vars."""
from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    """Pipeline settings. Override via environment variables or .env."""

    # "mono": single channel, speakers from diarization (normalized with the classifier).
    # "dual": one channel per speaker, segmented from word timings.
    AUDIO_MODE: Literal["mono", "dual"] = "mono"

    # Max number of files in flight at once
    CONCURRENCY: int = 5

    # Folder layout
    UPLOAD_DIR: str = "./data/upload"
    OUTPUT_DIR: str = "./data/generated"
    MIRROR_DIR: str = "./data/mirror"  # second copy of every output (e.g. a synced drive folder)
    RESPONSE_DIR: str = "./data/deepgram-response"  # cached transcription responses
    FAILED_DIR: str = "./data/failed-calls"
    # Normalized utterances per file (t-<name>.json / tn-<name>.json); empty = disabled
    TRANSCRIPT_SNAPSHOT_DIR: str = ""

    # Tried in this order when resolving <base-name> to an audio file
    AUDIO_EXTENSIONS: list[str] = [".wav", ".mp3", ".m4a"]

    # Segmentation / normalization
    UTTERANCE_GAP_SEC: float = 0.8  # silence gap (sec) that closes a dual-channel interval
    CONTEXT_RADIUS: int = 10  # utterances before/after a mislabeled one sent to the classifier

    # Deepgram transcription
    DEEPGRAM_API_KEY: str = ""
    DEEPGRAM_URL: str = "https://api.deepgram.com/v1/listen"
    DEEPGRAM_MODEL: str = "phonecall"
    DEEPGRAM_TIER: str = "nova"
    TRANSCRIBE_TIMEOUT_SEC: float = 60.0
    TRANSCRIBE_MAX_ATTEMPTS: int = 3  # transport errors only; HTTP error statuses are not retried
    RETRY_BASE_DELAY_SEC: float = 0.1  # exponential: base * 2**attempt

    # Speaker classifier: "openai" | "cloudflare"
    CLASSIFIER_BACKEND: Literal["openai", "cloudflare"] = "openai"
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    CLASSIFIER_MODEL: str = "gpt-4o"
    CLASSIFIER_MAX_TOKENS: int = 500
    CLASSIFIER_TIMEOUT_SEC: float = 120.0
    CLASSIFIER_MAX_ATTEMPTS: int = 3

    # Cloudflare Workers AI (when CLASSIFIER_BACKEND=cloudflare)
    CLOUDFLARE_ACCOUNT_ID: str = ""
    CLOUDFLARE_API_TOKEN: str = ""
    CLOUDFLARE_MODEL: str = "@cf/meta/llama-3.1-8b-instruct"

    # Logging: level (DEBUG, INFO, WARNING, ERROR); file path = also log to file (empty = console only).
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    class Config:
        env_file = ".env"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()

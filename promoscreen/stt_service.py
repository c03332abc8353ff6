import asyncio
import logging

from promoscreen import config
from promoscreen.errors import TranscriptionError
from promoscreen.schemas import Transcript

logger = logging.getLogger(__name__)

# Speech-to-Text V2 rejects inline content above 10 MB.
MAX_INLINE_AUDIO_BYTES = 10 * 1024 * 1024


async def transcribe_audio(audio: bytes, language: str | None = None) -> Transcript:
    """Transcribe one recorded answer using Google Cloud Speech-to-Text V2.

    The browser records WebM/Opus, so decoding is left to the service's
    auto-detection. Duration is taken from the end offset of the last
    recognized segment.
    """
    project_id = config.GOOGLE_CLOUD_PROJECT
    language = language or config.STT_LANGUAGE

    if not project_id:
        raise TranscriptionError("GOOGLE_CLOUD_PROJECT is not set")
    if not audio:
        raise TranscriptionError("Empty audio payload")
    if len(audio) > MAX_INLINE_AUDIO_BYTES:
        raise TranscriptionError(f"Audio too large for inline recognition ({len(audio)} bytes)")

    logger.info("[STT] Transcribing %d bytes (%s, model=%s)", len(audio), language, config.STT_MODEL)

    try:
        from google.cloud.speech_v2 import SpeechClient
        from google.cloud.speech_v2.types import cloud_speech

        def do_transcribe() -> Transcript:
            client = SpeechClient()
            request = cloud_speech.RecognizeRequest(
                recognizer=f"projects/{project_id}/locations/global/recognizers/_",
                config=cloud_speech.RecognitionConfig(
                    auto_decoding_config=cloud_speech.AutoDetectDecodingConfig(),
                    language_codes=[language],
                    model=config.STT_MODEL,
                    features=cloud_speech.RecognitionFeatures(enable_automatic_punctuation=True),
                ),
                content=audio,
            )
            response = client.recognize(request=request)

            parts = []
            duration = None
            detected_language = None
            for result in response.results:
                if result.alternatives:
                    parts.append(result.alternatives[0].transcript.strip())
                if result.result_end_offset:
                    duration = result.result_end_offset.total_seconds()
                if result.language_code:
                    detected_language = result.language_code

            return Transcript(
                text=" ".join(p for p in parts if p).strip(),
                duration_seconds=duration,
                language=detected_language or language,
            )

        transcript = await asyncio.to_thread(do_transcribe)
    except Exception as e:
        raise TranscriptionError(f"Speech-to-Text request failed: {e}") from e

    logger.info(
        "[STT] Result: %d chars, duration=%s, language=%s",
        len(transcript.text),
        transcript.duration_seconds,
        transcript.language,
    )
    return transcript

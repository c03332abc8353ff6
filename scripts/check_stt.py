import asyncio
import os
import sys

from promoscreen import config
from promoscreen.errors import TranscriptionError
from promoscreen.stt_service import transcribe_audio


def check_google_cloud_auth() -> bool:
    print("--- Check Google Cloud Auth ---")

    creds_path = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")

    print(f"GOOGLE_CLOUD_PROJECT: {config.GOOGLE_CLOUD_PROJECT}")
    print(f"GOOGLE_APPLICATION_CREDENTIALS: {creds_path}")

    if not config.GOOGLE_CLOUD_PROJECT or not creds_path:
        print("\n❌ Missing GOOGLE_CLOUD_PROJECT or GOOGLE_APPLICATION_CREDENTIALS in .env")
        return False

    if not os.path.exists(creds_path):
        print(f"\n❌ Credential file not found at: {creds_path}")
        return False

    print("\n✅ Environment variables are set and file exists.")
    return True


async def check_recording(path: str) -> None:
    with open(path, "rb") as f:
        audio = f.read()

    print(f"Sending {len(audio)} bytes from {path} to Speech-to-Text V2 (model={config.STT_MODEL})...")
    try:
        transcript = await transcribe_audio(audio)
    except TranscriptionError as e:
        print("\n❌ FAILED: the API call returned an error.")
        print(f"Error Details: {e.message}")
        print("\nRemedy: grant the service account the 'Cloud Speech Client' role in IAM.")
        return

    print("\n✅ SUCCESS")
    print(f"Transcript: {transcript.text}")
    print(f"Duration: {transcript.duration_seconds}s, language: {transcript.language}")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("usage: python scripts/check_stt.py <recording.webm>")
        sys.exit(2)
    if check_google_cloud_auth():
        asyncio.run(check_recording(sys.argv[1]))

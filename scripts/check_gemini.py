import asyncio
import sys

from promoscreen import config
from promoscreen.errors import UpstreamError
from promoscreen.scoring_service import analyze_candidate
from promoscreen.questions import QUESTION_KEYS

SAMPLE_ANSWERS = {
    key: "I helped my aunt sell vetkoek at the taxi rank every weekend and learned to talk to everyone."
    for key in QUESTION_KEYS
}

if not config.GEMINI_API_KEY or config.GEMINI_API_KEY == "your-gemini-api-key":
    print("❌ GEMINI_API_KEY is missing or still the placeholder in .env.")
    sys.exit(1)

print(f"✅ Key read from .env (starts with: {config.GEMINI_API_KEY[:10]}...)")
print(f"🔄 Scoring a sample candidate with {config.SCORING_MODEL}...")

try:
    result = asyncio.run(analyze_candidate("Sample Candidate", SAMPLE_ANSWERS))
    print("\n🎉 SUCCESS! The key works and the response matches the analysis schema.")
    print(f"🤖 Score: {result.overall_score} ({result.recommendation})")
    print(f"   Strengths: {'; '.join(result.strengths)}")
except UpstreamError as e:
    print("\n❌ FAILED: Gemini did not return a usable analysis.")
    print(f"Details: {e.message}")
    sys.exit(1)

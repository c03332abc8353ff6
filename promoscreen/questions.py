QUESTIONS = [
    "Tell us about a time you helped someone choose a product. What did you do?",
    "Imagine a customer says no to your product. How would you feel and what would you do?",
    "What makes you want to work as a promoter? What excites you about it?",
    "Tell us about a time you had to solve a problem without help. What happened?",
    "How do you get along with people? Give us an example.",
    "What would you do if you had a bad day but still had to work?",
    "Why should we choose you for this position?",
]

QUESTION_KEYS = [f"question{i + 1}" for i in range(len(QUESTIONS))]

AVAILABILITY_OPTIONS = ["full-time", "part-time", "weekends", "flexible"]

PRODUCT_COMFORT_OPTIONS = [
    "very-comfortable",
    "comfortable",
    "neutral",
    "somewhat-uncomfortable",
    "uncomfortable",
]

RECOMMENDATIONS = ["Hire", "Maybe", "No-Hire"]

TRAIT_KEYS = ["selfMotivation", "salesAptitude", "reliability", "dedication"]


def question_text(number: int) -> str:
    """Return the text of question ``number`` (1-based)."""
    return QUESTIONS[number - 1]

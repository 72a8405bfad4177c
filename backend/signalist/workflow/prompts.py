"""Prompts for the generative-text steps."""

import json
from collections.abc import Sequence

from pydantic import BaseModel

from .models import SignUpEvent

PERSONALIZED_WELCOME_EMAIL_PROMPT = """
Generate highly personalized HTML content that will be inserted into a welcome
email template at the {{intro}} placeholder for a new Signalist user.

User profile data:
{{userProfile}}

Requirements:
- Output a single <p> element with inline-safe HTML only (no markdown, no code fences).
- Two to three sentences, warm and specific to the profile above.
- Reference their investment goals, risk tolerance or preferred industry when given.
- Mention that Signalist helps them track stocks and act on timely market signals.
- Never give financial advice or promise returns.
"""

NEWS_SUMMARY_EMAIL_PROMPT = """
Generate HTML content for a daily market news summary email for a Signalist user.
The content will be inserted into the {{newsContent}} placeholder of the template.

News data to summarize:
{{newsData}}

Requirements:
- Output clean HTML only (no markdown, no code fences).
- Group related stories into short sections with an <h3> heading each.
- For each story: a one-sentence takeaway, why it matters for investors, and a
  "Read more" link to the original url.
- Keep the whole summary under 400 words and write in plain English.
- If the news data is empty, write a short note that there was no notable
  market news for the user's watchlist today and suggest adding symbols.
"""

FALLBACK_WELCOME_INTRO = (
    "Thanks for joining Signalist. You now have the tools to track markets "
    "and make smarter moves."
)


def build_user_profile(event: SignUpEvent) -> str:
    """Profile block for the welcome prompt."""
    return (
        f"- Country: {event.country}\n"
        f"- Investment goals: {event.investment_goals}\n"
        f"- Risk tolerance: {event.risk_tolerance}\n"
        f"- Preferred industry: {event.preferred_industry}"
    )


def build_welcome_prompt(event: SignUpEvent) -> str:
    return PERSONALIZED_WELCOME_EMAIL_PROMPT.replace(
        "{{userProfile}}", build_user_profile(event)
    )


def build_news_summary_prompt(articles: Sequence[BaseModel]) -> str:
    """Summary prompt with the articles serialized as indented JSON.

    An empty article list still produces a prompt.
    """
    news_data = json.dumps(
        [article.model_dump(mode="json") for article in articles],
        indent=2,
    )
    return NEWS_SUMMARY_EMAIL_PROMPT.replace("{{newsData}}", news_data)

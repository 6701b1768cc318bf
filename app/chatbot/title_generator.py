import re

from loguru import logger

from app.common.models import ChatHistoryConfig


TITLE_SYSTEM_PROMPT = """You are a title generator. Generate a concise, descriptive title (3-6 words) for a chat conversation based on the user's first message.

Rules:
- Maximum 6 words
- No quotes or special characters
- Capture the main topic
- Be specific and clear
- Use title case"""


class TitleGenerator:
    """Names a new conversation after its first user message."""

    def __init__(self, chatbot_provider) -> None:
        # callable resolving a model id to a chatbot, raises for unknown ids
        self.chatbot_provider = chatbot_provider

    async def generate_title(self, seed_text: str, model_id: str) -> str:
        """
        Returns a short title for `seed_text`.
        Falls back to the first 100 characters of the seed on any failure, never raises.
        """
        fallback = seed_text[: ChatHistoryConfig.SEED_TITLE_LENGTH]
        try:
            chatbot = self.chatbot_provider(model_id)
            prompt = chatbot.build_prompt(TITLE_SYSTEM_PROMPT, f'Generate a title for this message: "{seed_text}"')
            text = await chatbot.get_text_response_async(prompt)
        except Exception:
            logger.exception(f"Error generating title with {model_id}")
            return fallback

        title = clean_title(text)
        return title if title else fallback


def clean_title(text: str) -> str:
    title = re.sub(r"[\"']", "", text.strip())
    words = title.split()
    # upper-case first letters only, "AI" stays "AI"
    return " ".join(word[:1].upper() + word[1:] for word in words[: ChatHistoryConfig.MAX_TITLE_WORDS])

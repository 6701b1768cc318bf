from loguru import logger

from app.chatbot.chatbot_models import RelatedQuestions
from app.conversation.messages import Message


RELATED_QUESTIONS_SYSTEM_PROMPT = """As a professional web researcher, your task is to generate a set of three queries that explore the subject matter more deeply, building upon the initial query and the information uncovered in its search results.

Aim to create queries that progressively delve into more specific aspects, implications, or adjacent topics related to the initial query. The goal is to anticipate the user's potential information needs and guide them towards a more comprehensive understanding of the subject matter.
Please match the language of the response to the user's language."""


class RelatedQuestionsGenerator:
    """Suggests follow-up questions for a finished answer."""

    def __init__(self, chatbot_provider) -> None:
        self.chatbot_provider = chatbot_provider

    async def generate(self, response_messages: list[Message], model_id: str) -> RelatedQuestions:
        chatbot = self.chatbot_provider(model_id)
        transcript = "\n\n".join(f"[{m.role.value}] {m.serialized_content()}" for m in response_messages)
        prompt = chatbot.build_prompt(RELATED_QUESTIONS_SYSTEM_PROMPT, transcript)
        related_questions = await chatbot.get_structured_response_async(prompt, RelatedQuestions)
        logger.debug(f"Generated {len(related_questions.items)} related questions with {model_id}")
        return related_questions

from unittest.mock import AsyncMock, Mock

import pytest

from app.chatbot.chatbot_models import RelatedQuestion, RelatedQuestions
from app.chatbot.related_questions import RELATED_QUESTIONS_SYSTEM_PROMPT, RelatedQuestionsGenerator
from app.common.models import Role
from app.conversation.messages import Message


@pytest.mark.asyncio
async def test_generate_asks_for_structured_related_questions():
    expected = RelatedQuestions(items=[RelatedQuestion(query="When is aurora season?")])
    chatbot = Mock()
    chatbot.build_prompt = Mock(return_value=[("system", "s"), ("human", "p")])
    chatbot.get_structured_response_async = AsyncMock(return_value=expected)
    generator = RelatedQuestionsGenerator(chatbot_provider=Mock(return_value=chatbot))

    result = await generator.generate([Message(role=Role.ASSISTANT, content="Auroras follow solar activity.")], "google:gemini-2.0-flash")

    assert result == expected
    system, transcript = chatbot.build_prompt.call_args.args
    assert system == RELATED_QUESTIONS_SYSTEM_PROMPT
    assert "[assistant] Auroras follow solar activity." in transcript
    chatbot.get_structured_response_async.assert_awaited_once_with([("system", "s"), ("human", "p")], RelatedQuestions)


@pytest.mark.asyncio
async def test_generate_propagates_model_errors():
    chatbot = Mock()
    chatbot.build_prompt = Mock(return_value=[])
    chatbot.get_structured_response_async = AsyncMock(side_effect=RuntimeError("quota exceeded"))
    generator = RelatedQuestionsGenerator(chatbot_provider=Mock(return_value=chatbot))

    with pytest.raises(RuntimeError):
        await generator.generate([], "google:gemini-2.0-flash")

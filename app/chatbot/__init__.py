from abc import ABC
import os
from typing import Any, TypeVar, Union

from langchain_aws import ChatBedrock
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_google_genai import ChatGoogleGenerativeAI
from pydantic import BaseModel


T = TypeVar("T", bound=BaseModel)

# system/user prompt pairs or a plain prompt string
Prompt = Union[str, list[tuple[str, str]]]


class BaseChatbot(ABC):
    llm: BaseChatModel

    def __init__(self, model_name: str, temperature: float = 0):
        self.model_name = model_name
        self.temperature = temperature

    @staticmethod
    def build_prompt(system: str, prompt: str) -> list[tuple[str, str]]:
        return [("system", system), ("human", prompt)]

    async def get_text_response_async(self, prompt: Prompt) -> str:
        response = await self.llm.ainvoke(prompt)
        return response.text()

    async def get_structured_response_async(self, prompt: Prompt, schema: type[T]) -> T:
        """Asks the model for an instance of `schema`."""
        structured_llm = self.llm.with_structured_output(schema)
        result: Any = await structured_llm.ainvoke(prompt)
        if isinstance(result, schema):
            return result
        return schema.model_validate(result)


class GeminiChatbot(BaseChatbot):
    def __init__(self, model_name: str = "gemini-2.0-flash", temperature: float = 0):
        super().__init__(model_name=model_name, temperature=temperature)
        self.llm = ChatGoogleGenerativeAI(model=model_name, temperature=temperature)


class ClaudeBedrockChatbot(BaseChatbot):
    def __init__(self, model_name: str = "us.anthropic.claude-3-7-sonnet-20250219-v1:0", temperature: float = 0):
        super().__init__(model_name=model_name, temperature=temperature)
        stage = os.getenv("STAGE", "local").lower()

        bedrock_kwargs = {
            "model": model_name,
            "model_kwargs": {"temperature": temperature},
            "region": os.getenv("AWS_REGION", "us-east-1"),
        }

        # Only use profile for local development if AWS_PROFILE is explicitly set
        if stage == "local" and os.getenv("AWS_PROFILE"):
            bedrock_kwargs["credentials_profile_name"] = os.getenv("AWS_PROFILE")

        self.llm = ChatBedrock(**bedrock_kwargs)

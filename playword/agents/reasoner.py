from typing import List, Literal, Optional, Sequence, Type, TypeVar

from langchain_core.exceptions import OutputParserException
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI, OpenAIEmbeddings
from pydantic import BaseModel, Field, ValidationError

from . import prompts
from ..core.config import CHAT_MODEL, EMBEDDING_MODEL
from ..core.errors import ReasonerMalformedOutput
from ..core.logger import Logger

T = TypeVar("T", bound=BaseModel)


class ActionType(BaseModel):
    type: Literal["assertion", "operation", "query"]


class CandidateChoice(BaseModel):
    index: int = Field(description="Index of the element the user input refers to")


class ElementSummary(BaseModel):
    summary: str = Field(description="Short noun phrase describing the element")


class ImageData(BaseModel):
    data: str = Field(description="The information the user asked for")


class Reasoner:
    """Chat model and embeddings behind every AI decision of a session."""

    def __init__(
        self,
        llm=None,
        embeddings=None,
        model: str = CHAT_MODEL,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        logger: Optional[Logger] = None,
    ):
        self.logger = logger or Logger()
        self.llm = llm or ChatOpenAI(
            model=model,
            temperature=0,
            timeout=30,
            max_retries=1,
            api_key=api_key,
            base_url=base_url,
        )
        self.embeddings = embeddings or OpenAIEmbeddings(
            model=EMBEDDING_MODEL, api_key=api_key, base_url=base_url)

    async def structured_output(self, schema: Type[T], messages: Sequence[BaseMessage]) -> T:
        try:
            result = await self.llm.with_structured_output(schema).ainvoke(list(messages))
        except (OutputParserException, ValidationError) as e:
            raise ReasonerMalformedOutput(f"{schema.__name__}: {e}") from e
        if isinstance(result, dict):
            try:
                result = schema.model_validate(result)
            except ValidationError as e:
                raise ReasonerMalformedOutput(f"{schema.__name__}: {e}") from e
        if not isinstance(result, schema):
            raise ReasonerMalformedOutput(f"{schema.__name__}: got {result!r}")
        return result

    async def classify_action(self, message: HumanMessage) -> str:
        result = await self.structured_output(
            ActionType, [SystemMessage(content=prompts.CLASSIFY_ACTION), message])
        self.logger.info("Reasoner", f"Classified as {result.type}")
        return result.type

    async def use_tools(self, tools: list, messages: Sequence[BaseMessage]) -> AIMessage:
        bound = self.llm.bind_tools(tools)
        return await bound.ainvoke([SystemMessage(content=prompts.TOOL_CALL), *messages])

    async def get_best_candidate(self, user_input: str, candidates: List[str], screenshot: Optional[str] = None) -> int:
        listing = "\n".join(f"Index {i}: {html}" for i, html in enumerate(candidates))
        content = [
            {"type": "text", "text": prompts.CANDIDATE_LIST_REFERENCE},
            {"type": "text", "text": f"User input: {user_input}"},
            {"type": "text", "text": f"Elements:\n{listing}"},
        ]
        if screenshot:
            content.append({"type": "image_url", "image_url": {"url": screenshot}})
        result = await self.structured_output(CandidateChoice, [HumanMessage(content=content)])
        return result.index

    async def embed_documents(self, texts: List[str]) -> List[List[float]]:
        return await self.embeddings.aembed_documents(texts)

    async def embed_query(self, text: str) -> List[float]:
        return await self.embeddings.aembed_query(text)

    async def summarize_html(self, html: str) -> str:
        result = await self.structured_output(
            ElementSummary,
            [SystemMessage(content=prompts.SUMMARIZE_HTML), HumanMessage(content=html)])
        return result.summary

    async def analyze_image(self, image: str, user_input: str) -> str:
        human_msg = HumanMessage(
            content=[
                {"type": "text", "text": f"User input: {user_input}"},
                {"type": "image_url", "image_url": {"url": image}},
            ]
        )
        result = await self.structured_output(
            ImageData, [SystemMessage(content=prompts.ANALYZE_IMAGE), human_msg])
        return result.data

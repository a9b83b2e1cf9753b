"""
Answer prompt assembly.

Builds chat messages from a fixed system preamble (current date and time,
group identity, assistant name), the numbered document excerpts and the
question.

Dependencies: langchain_core
System role: Prompt construction between context assembly and generation
"""

from collections.abc import Sequence
from datetime import datetime, timezone

from langchain_core.messages import BaseMessage
from langchain_core.prompts import ChatPromptTemplate

from classroom_rag.models.retrieval import RetrievedPassage

SYSTEM_PREAMBLE = """You are {assistant_name}, an AI study assistant for {group_name}.
Current date and time: {now}.

Answer the question using the course documents below. When you use a document, mention it by name.
If the documents do not contain the answer, say so and answer from general knowledge, making clear which parts are not from the documents.
Keep answers focused and well structured.

Course documents:
{context}"""

NO_CONTEXT = "No documents have been uploaded to this group yet."

ANSWER_PROMPT = ChatPromptTemplate.from_messages([
    ("system", SYSTEM_PREAMBLE),
    ("human", "{question}"),
])


def format_excerpts(passages: Sequence[RetrievedPassage]) -> str:
    """Render passages as 'Document N (label):' blocks."""
    if not passages:
        return NO_CONTEXT
    return "\n\n".join(
        f"Document {index} ({passage.source_label}):\n{passage.content}"
        for index, passage in enumerate(passages, start=1)
    )


def build_answer_messages(
    question: str,
    passages: Sequence[RetrievedPassage],
    group_name: str,
    assistant_name: str,
    now: datetime | None = None,
) -> list[BaseMessage]:
    """
    Build the message list for one answer.

    Args:
        question: Requester's question
        passages: Sized context passages
        group_name: Group display name
        assistant_name: Name the assistant answers as
        now: Timestamp for the preamble (default: current UTC time)

    Returns:
        list[BaseMessage]: System and human messages
    """
    now = now or datetime.now(timezone.utc)
    return ANSWER_PROMPT.invoke({
        "assistant_name": assistant_name,
        "group_name": group_name,
        "now": now.strftime("%A, %B %d, %Y %H:%M %Z").strip(),
        "context": format_excerpts(passages),
        "question": question,
    }).to_messages()

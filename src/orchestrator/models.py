"""
src/orchestrator/models.py

Pydantic models for the transcript, tool I/O and audit entries.
"""


from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _Frozen(BaseModel):

    model_config = ConfigDict(frozen=True)


# --- Content blocks ------------------------------------------------------------
class TextBlock(_Frozen):

    type: Literal["text"] = "text"
    text: str


class ToolUseBlock(_Frozen):

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    input: Dict[str, Any] = Field(default_factory=dict)


class ToolResultBlock(_Frozen):

    type: Literal["tool_result"] = "tool_result"
    tool_use_id: str
    content: str
    is_error: bool = False


ContentBlock = Annotated[Union[TextBlock, ToolUseBlock, ToolResultBlock], Field(discriminator="type")]


class Turn(_Frozen):
    """One transcript entry. Plain-text content is kept as a string."""

    role: Literal["user", "assistant"]
    content: Union[str, Tuple[ContentBlock, ...]]

    def blocks(self) -> Tuple[Union[TextBlock, ToolUseBlock, ToolResultBlock], ...]:

        if isinstance(self.content, str):
            return (TextBlock(text=self.content),)

        return self.content


Transcript = List[Turn]


# --- Model boundary ------------------------------------------------------------
class ToolDeclaration(_Frozen):

    name: str
    description: str
    input_schema: Dict[str, Any]


class ModelResponse(_Frozen):

    content: Tuple[ContentBlock, ...] = ()
    stop_reason: Optional[str] = None

    @property
    def tool_uses(self) -> List[ToolUseBlock]:

        return [b for b in self.content if isinstance(b, ToolUseBlock)]

    @property
    def text(self) -> str:

        return join_text(self.content)


def join_text(blocks) -> str:
    """Concatenate the text blocks of a content sequence."""

    parts = []

    for block in blocks:
        if isinstance(block, TextBlock):
            parts.append(block.text)
        elif isinstance(block, (ToolUseBlock, ToolResultBlock)):
            continue
        else:
            raise TypeError(f"Unexpected content block: {block!r}")

    return "\n".join(p for p in parts if p)


# --- Database ------------------------------------------------------------------
class ColumnInfo(_Frozen):

    name: str
    type: str


SchemaDescriptor = Dict[str, List[ColumnInfo]]


class QueryResult(BaseModel):
    """Outcome of one query: rows on success, an error on failure, never both."""

    ok: bool
    rows: List[Dict[str, Any]] = Field(default_factory=list)
    columns: List[str] = Field(default_factory=list)
    truncated: bool = False
    error_kind: Optional[str] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _single_outcome(self) -> "QueryResult":

        if self.ok and (self.error or self.error_kind):
            raise ValueError("successful result cannot carry an error")
        if not self.ok and (self.rows or self.columns or not self.error):
            raise ValueError("failed result must carry an error and no rows")

        return self

    @classmethod
    def success(cls, rows: List[Dict[str, Any]], columns: List[str], truncated: bool = False) -> "QueryResult":

        return cls(ok=True, rows=rows, columns=columns, truncated=truncated)

    @classmethod
    def failure(cls, kind: str, error: str) -> "QueryResult":

        return cls(ok=False, error_kind=kind, error=error)


# --- Audit ---------------------------------------------------------------------
class AuditEntry(BaseModel):

    step: str
    ok: bool
    detail: str
    tool_use: Optional[ToolUseBlock] = None
    tool_result: Optional[ToolResultBlock] = None


class OrchestratorResult(BaseModel):

    summary: str
    content: List[ContentBlock]     # Final model response blocks
    transcript: List[Turn]
    audit: List[AuditEntry]

"""
src/orchestrator/errors.py

Error taxonomy.

ToolError subclasses never leave a request: the registry turns them into an
error tool result so the model can correct itself. RequestError subclasses
abort the request and reach the caller.
"""


class AssistantError(Exception):

    kind = "AssistantError"

    def __init__(self, message: str = ""):

        super().__init__(message or self.kind)
        self.message = message or self.kind


# --- Recovered inside the loop -------------------------------------------------
class ToolError(AssistantError):

    kind = "ToolError"


class NonSelectQuery(ToolError):

    kind = "NonSelectQuery"


class QueryExecutionFailure(ToolError):

    kind = "QueryExecutionFailure"


class UnknownTool(ToolError):

    kind = "UnknownTool"


class InvalidToolInput(ToolError):

    kind = "InvalidToolInput"


# --- Abort the request ---------------------------------------------------------
class RequestError(AssistantError):

    kind = "RequestError"


class ModelInferenceFailure(RequestError):

    kind = "ModelInferenceFailure"


class ToolUseLimitExceeded(RequestError):

    kind = "ToolUseLimitExceeded"

    def __init__(self, max_rounds: int):

        super().__init__(f"Tool-use limit exceeded: no final answer after {max_rounds} model calls")
        self.max_rounds = max_rounds


class SchemaIntrospectionFailure(RequestError):

    kind = "SchemaIntrospectionFailure"

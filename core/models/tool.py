"""Tool invocation and response payloads."""

from typing import Annotated, Literal

from pydantic import Field

from .base import FrozenModel


class FunctionCallInvocation(FrozenModel):
    type: Literal["function_call"] = "function_call"
    name: str
    args: str | None = None  # JSON-encoded, None when there are no args


class CodeExecutionInvocation(FrozenModel):
    type: Literal["code_execution"] = "code_execution"
    language: str
    code: str
    author: str = "gemini_auto_inline"


class FunctionCallResponse(FrozenModel):
    type: Literal["function_call"] = "function_call"
    name: str
    result: str


class CodeExecutionResponse(FrozenModel):
    type: Literal["code_execution"] = "code_execution"
    result: str
    executor: str = "gemini_auto_inline"


ToolInvocation = Annotated[
    FunctionCallInvocation | CodeExecutionInvocation, Field(discriminator="type")
]
ToolResponse = Annotated[
    FunctionCallResponse | CodeExecutionResponse, Field(discriminator="type")
]
ToolEnvironment = Literal["upstream", "server", "client"]

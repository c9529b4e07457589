"""대화 스레드(Thread) 관련 데이터 모델 정의.

이 모듈은 사용자별 대화 스레드와, 스레드에 순서대로 쌓이는 메시지를 정의합니다.
"""

import uuid
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class MessageRole(str, Enum):
    """스레드 메시지 역할."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ConversationThread(BaseModel):
    """대화 스레드.

    논리적 대화 하나당 한 번 생성되고, 위임 체인 전체에서 재사용됩니다.
    """

    thread_id: str = Field(
        default_factory=lambda: str(uuid.uuid4()), description="스레드 고유 식별자"
    )
    resource_id: str = Field(..., min_length=1, description="소유 사용자(리소스) ID")
    title: str | None = Field(default=None, description="스레드 제목")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="생성 시간"
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="마지막 갱신 시간"
    )
    metadata: dict[str, Any] = Field(default_factory=dict, description="추가 메타데이터")

    model_config = {"extra": "forbid"}

    def touch(self) -> None:
        """갱신 시간 업데이트."""
        self.updated_at = datetime.now(UTC)


class ThreadMessage(BaseModel):
    """스레드에 저장되는 메시지 하나."""

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()), description="메시지 고유 식별자"
    )
    thread_id: str = Field(..., description="소속 스레드 ID")
    resource_id: str = Field(..., description="소유 사용자(리소스) ID")
    role: MessageRole = Field(..., description="메시지 역할")
    content: str = Field(default="", description="메시지 본문")
    tool_calls: list[dict[str, Any]] = Field(
        default_factory=list, description="assistant 메시지의 도구 호출 목록"
    )
    tool_call_id: str | None = Field(default=None, description="tool 메시지의 호출 ID")
    tool_name: str | None = Field(default=None, description="tool 메시지의 도구 이름")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="생성 시간"
    )

    model_config = {"extra": "forbid"}

    def to_llm_message(self) -> dict[str, Any]:
        """LLM Provider 공통 메시지 dict로 변환."""
        message: dict[str, Any] = {"role": self.role.value, "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = self.tool_calls
        if self.role == MessageRole.TOOL:
            message["tool_call_id"] = self.tool_call_id
            message["name"] = self.tool_name
        return message

    def estimate_tokens(self) -> int:
        """대략적인 토큰 수 (문자 4개당 1토큰)."""
        size = len(self.content)
        for call in self.tool_calls:
            size += len(str(call.get("arguments", "")))
        return size // 4 + 1

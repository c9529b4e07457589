"""Coordinator 입출력 데이터 모델 정의."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from .task import Priority


class CoordinationContext(BaseModel):
    """요청에 동반되는 선택적 힌트."""

    thread: str | None = Field(default=None, description="이어서 사용할 스레드 ID")
    priority: Priority | None = Field(default=None, description="요청 우선순위")
    timeout: float | None = Field(
        default=None, gt=0, description="요청 제한 시간 (초)"
    )

    model_config = {"extra": "forbid"}


class CoordinationRequest(BaseModel):
    """Coordinator 진입점 요청."""

    user_id: str = Field(..., min_length=1, description="사용자(리소스) ID")
    message: str = Field(..., min_length=1, description="사용자 메시지")
    context: CoordinationContext = Field(
        default_factory=CoordinationContext, description="요청 힌트"
    )

    model_config = {"extra": "forbid"}

    @field_validator("user_id", "message")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class CoordinationResult(BaseModel):
    """Coordinator 호출 한 번의 최종 결과.

    정상적인 처리 실패도 예외 대신 success=False 결과로 표현됩니다.
    """

    success: bool = Field(..., description="전체 성공 여부")
    response: str = Field(..., description="사용자에게 보여줄 응답")
    thread: str = Field(default="", description="사용된 스레드 ID")
    agents_used: list[str] = Field(default_factory=list, description="사용된 Agent")
    execution_time: float = Field(default=0.0, ge=0.0, description="소요 시간 (초)")
    metadata: dict[str, Any] = Field(default_factory=dict, description="추가 정보")

    model_config = {"extra": "forbid"}

"""작업 분석 및 위임(Delegation) 관련 데이터 모델 정의.

이 모듈은 Task Analyzer의 분석 결과와,
Delegation Router가 주고받는 요청/결과 모델을 정의합니다.
"""

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class Complexity(str, Enum):
    """요청 복잡도 등급."""

    SIMPLE = "simple"  # 주 Agent가 직접 처리
    MODERATE = "moderate"  # 일부 위임 필요
    COMPLEX = "complex"  # 하위 작업 분해 및 다중 위임


class Priority(str, Enum):
    """작업 우선순위."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskAnalysis(BaseModel):
    """단일 요청에 대한 분석 결과.

    요청 처리 동안만 유지되며, 관찰용으로 결과 metadata에 첨부될 수 있습니다.
    """

    primary_intent: str = Field(..., description="주요 의도")
    required_agents: list[str] = Field(
        default_factory=list, description="관련 있어 보이는 Agent ID (중복 없음)"
    )
    complexity: Complexity = Field(..., description="복잡도 등급")
    estimated_steps: int = Field(..., ge=1, description="예상 단계 수")
    suggested_approach: str = Field(..., description="권장 처리 방식")

    model_config = {"extra": "forbid"}

    @field_validator("required_agents")
    @classmethod
    def dedupe_agents(cls, v: list[str]) -> list[str]:
        return list(dict.fromkeys(v))


class DelegationContext(BaseModel):
    """위임 시 함께 전달되는 부가 정보."""

    priority: Priority | None = Field(default=None, description="작업 우선순위")
    deadline: str | None = Field(default=None, description="완료 기한")
    related_info: dict[str, Any] | None = Field(
        default=None, description="작업 관련 추가 정보"
    )

    model_config = {"extra": "forbid"}


class DelegationRequest(BaseModel):
    """하위 Agent에게 보내는 위임 요청."""

    target_agent: str = Field(..., min_length=1, description="위임 대상 Agent 키")
    task: str = Field(..., min_length=1, description="수행할 작업 설명")
    context: DelegationContext | None = Field(default=None, description="부가 정보")

    model_config = {"extra": "forbid"}

    @field_validator("target_agent", "task")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class DelegationMetadata(BaseModel):
    """위임 결과 메타데이터."""

    agent: str = Field(..., description="실제로 호출된(또는 요청된) Agent")
    timestamp: datetime | None = Field(default=None, description="완료 시간")
    error_time: datetime | None = Field(default=None, description="실패 시간")
    tools_used: list[str] = Field(
        default_factory=list, description="생성 중 호출된 도구 이름"
    )

    model_config = {"extra": "forbid"}


class DelegationResult(BaseModel):
    """위임 요청 하나에 대한 결과.

    실패도 예외가 아닌 데이터로 반환됩니다.
    """

    success: bool = Field(..., description="성공 여부")
    result: str | None = Field(default=None, description="생성된 응답 텍스트")
    error: str | None = Field(default=None, description="에러 메시지 (실패 시)")
    metadata: DelegationMetadata = Field(..., description="메타데이터")

    model_config = {"extra": "forbid"}

    @classmethod
    def succeeded(
        cls, agent: str, text: str, tools_used: list[str] | None = None
    ) -> "DelegationResult":
        """성공 결과 생성."""
        return cls(
            success=True,
            result=text,
            metadata=DelegationMetadata(
                agent=agent,
                timestamp=datetime.now(UTC),
                tools_used=tools_used or [],
            ),
        )

    @classmethod
    def failed(cls, agent: str, error: str) -> "DelegationResult":
        """실패 결과 생성."""
        return cls(
            success=False,
            error=error or "Unknown error occurred",
            metadata=DelegationMetadata(agent=agent, error_time=datetime.now(UTC)),
        )

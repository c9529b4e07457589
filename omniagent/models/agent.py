"""Agent 관련 데이터 모델 정의.

이 모듈은 Agent의 설정과 런타임 상태를 정의합니다.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class AgentStatus(str, Enum):
    """Agent의 현재 상태."""

    ACTIVE = "active"  # 활성 상태, 작업 수행 가능
    INACTIVE = "inactive"  # 비활성 상태
    BUSY = "busy"  # 생성 작업 수행 중
    ERROR = "error"  # 오류 상태


class AgentConfig(BaseModel):
    """Agent 설정 정보.

    YAML 설정 파일에서 로드되거나 프로그래밍 방식으로 생성됩니다.
    `tools`는 내장 toolkit 이름 목록이며, `remote_tool_domain`은
    Registry의 원격 도구 중 도메인 키워드에 맞는 것만 붙입니다 (`*`는 전체).
    """

    agent_id: str = Field(..., min_length=1, description="Agent 고유 식별자")
    name: str = Field(..., description="Agent 표시 이름")
    description: str = Field(default="", description="Agent 설명")
    model: str = Field(default="gpt-4o-mini", description="사용할 LLM 모델")
    provider: str | None = Field(
        default=None, description="LLM Provider 이름 (없으면 모델명으로 추론)"
    )
    max_tokens: int = Field(default=4096, ge=1, description="최대 응답 토큰 수")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="LLM 온도 설정")
    max_steps: int = Field(default=5, ge=1, description="기본 도구 호출 단계 상한")
    system_prompt: str | None = Field(
        default=None, description="Agent의 시스템 프롬프트"
    )
    tools: list[str] = Field(default_factory=list, description="사용할 toolkit 이름")
    remote_tool_domain: str | None = Field(
        default=None, description="붙일 원격 도구 도메인 (email, calendar, web, weather, *)"
    )
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="추가 메타데이터"
    )

    model_config = {"extra": "forbid"}


class AgentInfo(BaseModel):
    """Agent 런타임 정보.

    Registry에 등록된 Agent의 현재 상태를 포함합니다.
    """

    agent_id: str = Field(..., description="Agent 고유 식별자")
    name: str = Field(..., description="Agent 표시 이름")
    description: str = Field(default="", description="Agent 설명")
    status: AgentStatus = Field(default=AgentStatus.INACTIVE, description="현재 상태")
    tools: list[str] = Field(default_factory=list, description="사용 가능한 도구 이름")
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="추가 메타데이터 (모델 등)"
    )

    model_config = {"extra": "forbid"}

    @classmethod
    def from_config(
        cls, config: AgentConfig, status: AgentStatus = AgentStatus.INACTIVE
    ) -> "AgentInfo":
        """AgentConfig로부터 AgentInfo 생성."""
        return cls(
            agent_id=config.agent_id,
            name=config.name,
            description=config.description,
            status=status,
            tools=list(config.tools),
            metadata={
                "model": config.model,
                "max_tokens": config.max_tokens,
                "temperature": config.temperature,
                "max_steps": config.max_steps,
            },
        )

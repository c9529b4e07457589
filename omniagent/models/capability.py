"""Capability(도구/리소스/프롬프트) 관련 데이터 모델 정의.

이 모듈은 Capability Provider가 노출하는 항목과,
그 항목을 읽거나 실행한 결과를 표현하는 모델을 정의합니다.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class CapabilityKind(str, Enum):
    """Provider가 노출하는 항목의 종류."""

    TOOL = "tool"  # 원격 실행 가능한 도구
    RESOURCE = "resource"  # URI로 읽을 수 있는 콘텐츠
    PROMPT = "prompt"  # 인자를 받아 메시지로 확장되는 템플릿


class QueryType(str, Enum):
    """관련성 점수 계산 시 사용하는 질의 유형."""

    INFORMATION = "information"
    TASK = "task"
    INTEGRATION = "integration"
    ANALYSIS = "analysis"
    GENERAL = "general"


class CapabilityEntry(BaseModel):
    """Registry 스냅샷의 단일 항목.

    (provider_id, kind, name, version) 조합은 스냅샷 안에서 유일합니다.
    refresh 시 통째로 교체되며 제자리에서 수정되지 않습니다.
    """

    kind: CapabilityKind = Field(..., description="항목 종류")
    provider_id: str = Field(..., min_length=1, description="소유 Provider(서버) 이름")
    name: str = Field(..., min_length=1, description="Provider 내 고유 이름")
    uri: str | None = Field(default=None, description="리소스 URI (Resource 전용)")
    mime_type: str | None = Field(default=None, description="MIME 타입")
    description: str | None = Field(default=None, description="설명")
    version: str | None = Field(default=None, description="버전 (Prompt 전용)")
    arguments_schema: dict[str, Any] | None = Field(
        default=None, description="인자 스키마 (JSON Schema)"
    )

    model_config = {"extra": "forbid", "frozen": True}

    @property
    def key(self) -> tuple[str, str, str, str | None]:
        """스냅샷 내 중복 판정에 사용하는 식별 키."""
        return (self.provider_id, self.kind.value, self.name, self.version)

    def to_summary(self) -> dict[str, Any]:
        """도구 결과로 돌려줄 간단한 dict 표현."""
        summary: dict[str, Any] = {"server": self.provider_id, "name": self.name}
        if self.uri:
            summary["uri"] = self.uri
        if self.mime_type:
            summary["mime_type"] = self.mime_type
        if self.description:
            summary["description"] = self.description
        if self.version:
            summary["version"] = self.version
        return summary


class RelevanceScore(BaseModel):
    """질의와 항목 간의 관련성 점수 (요청 처리 중에만 사용)."""

    score: float = Field(..., ge=0.0, le=1.0, description="0~1 사이 점수")
    reasons: list[str] = Field(default_factory=list, description="매칭된 근거 목록")

    model_config = {"extra": "forbid", "frozen": True}

    @property
    def reason_text(self) -> str:
        """사람이 읽기 위한 근거 문자열."""
        return ", ".join(self.reasons) or "General match"


class RankedCapability(BaseModel):
    """점수가 매겨진 항목."""

    entry: CapabilityEntry
    relevance: RelevanceScore

    model_config = {"extra": "forbid", "frozen": True}


class ResourceContent(BaseModel):
    """리소스 본문의 한 조각.

    바이너리 콘텐츠는 디코딩하지 않고 placeholder 텍스트로 대체합니다.
    """

    uri: str = Field(..., description="콘텐츠 URI")
    mime_type: str | None = Field(default=None, description="MIME 타입")
    text: str = Field(default="", description="텍스트 본문 또는 placeholder")
    binary: bool = Field(default=False, description="바이너리 콘텐츠 여부")

    model_config = {"extra": "forbid"}

    @classmethod
    def binary_placeholder(
        cls, uri: str, mime_type: str | None, size: int | None = None
    ) -> "ResourceContent":
        """바이너리 콘텐츠용 placeholder 생성."""
        kind = mime_type or "application/octet-stream"
        detail = f", {size} bytes" if size is not None else ""
        return cls(
            uri=uri,
            mime_type=mime_type,
            text=f"[Binary content: {kind}{detail}]",
            binary=True,
        )


class ResourceContents(BaseModel):
    """read_resource 결과."""

    provider_id: str = Field(..., description="Provider 이름")
    uri: str = Field(..., description="요청한 리소스 URI")
    contents: list[ResourceContent] = Field(
        default_factory=list, description="콘텐츠 조각 목록"
    )

    model_config = {"extra": "forbid"}

    @property
    def content(self) -> str:
        """모든 조각을 이어 붙인 텍스트."""
        return "\n".join(part.text for part in self.contents)

    @property
    def mime_type(self) -> str | None:
        """첫 번째 조각의 MIME 타입."""
        return self.contents[0].mime_type if self.contents else None


class PromptMessage(BaseModel):
    """확장된 프롬프트의 메시지 하나."""

    role: str = Field(..., description="메시지 역할 (user, assistant 등)")
    content: str = Field(default="", description="메시지 본문")

    model_config = {"extra": "forbid"}


class PromptResult(BaseModel):
    """get_prompt 결과."""

    provider_id: str = Field(..., description="Provider 이름")
    name: str = Field(..., description="프롬프트 이름")
    description: str | None = Field(default=None, description="프롬프트 설명")
    version: str | None = Field(default=None, description="프롬프트 버전")
    messages: list[PromptMessage] = Field(
        default_factory=list, description="순서가 있는 메시지 목록"
    )

    model_config = {"extra": "forbid"}

    def format_transcript(self) -> str:
        """메시지를 대화 형식의 문자열로 변환."""
        blocks = [f"[{msg.role.upper()}]:\n{msg.content}" for msg in self.messages]
        return "\n\n".join(blocks)


class ToolCallResult(BaseModel):
    """call_tool 결과."""

    provider_id: str = Field(..., description="Provider 이름")
    name: str = Field(..., description="도구 이름")
    content: str = Field(default="", description="텍스트 결과")
    data: Any = Field(default=None, description="구조화된 결과 (있을 경우)")

    model_config = {"extra": "forbid"}

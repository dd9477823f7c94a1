"""Domain data models: pure Python dataclasses."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional


class ContentType(str, Enum):
    URL = "Url"
    EMAIL = "Email"
    PHONE = "Phone"
    FINANCIAL = "Financial"
    DATETIME = "DateTime"
    CODE = "Code"
    ADDRESS = "Address"
    PLAIN_TEXT = "PlainText"

    @classmethod
    def parse(cls, value: Any) -> "ContentType":
        """Map a raw type name onto the enum; anything unknown is plain text."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            return cls.PLAIN_TEXT


class ActionSource(str, Enum):
    RULE = "rule"
    AI = "ai"


class PopupMode(str, Enum):
    SELECTING = "selecting"
    PROCESSING = "processing"
    RESULT = "result"
    CLOSING = "closing"
    CLOSED = "closed"


ERROR_ACTION_TYPE = "error"


@dataclass(frozen=True)
class ContentFragment:
    """Clipboard payload handed to the popup once, at creation."""

    content: str
    content_type: ContentType = ContentType.PLAIN_TEXT
    action_count_hint: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "content_type", ContentType.parse(self.content_type))


@dataclass(frozen=True)
class ActionSuggestion:
    id: str
    label: str
    hotkey: str  # "1".."9"
    source: ActionSource = ActionSource.RULE
    reason: Optional[str] = None


@dataclass
class AIActionCandidate:
    """Suggestion as returned by the AI backend; only id/label/reason are used."""

    id: str
    label: str
    icon: str = ""
    hotkey: str = ""
    source: str = "ai"
    reason: Optional[str] = None
    confidence: float = 0.0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Optional["AIActionCandidate"]:
        """Build from a wire dict; returns None when id or label is missing."""
        action_id = data.get("id")
        label = data.get("label")
        if not isinstance(action_id, str) or not isinstance(label, str):
            return None
        if not action_id or not label:
            return None
        reason = data.get("reason")
        try:
            confidence = float(data.get("confidence") or 0.0)
        except (TypeError, ValueError):
            confidence = 0.0
        return cls(
            id=action_id,
            label=label,
            icon=str(data.get("icon") or ""),
            hotkey=str(data.get("hotkey") or ""),
            source=str(data.get("source") or "ai"),
            reason=reason if isinstance(reason, str) else None,
            confidence=confidence,
        )


@dataclass(frozen=True)
class AIResult:
    content: str
    action_type: str
    processing_time_ms: Optional[int] = None

    @property
    def is_error(self) -> bool:
        return self.action_type == ERROR_ACTION_TYPE


@dataclass(frozen=True)
class DispatchOutcome:
    """Either show an AI result (``result`` set) or close the popup now."""

    result: Optional[AIResult] = None

    @classmethod
    def show_result(cls, result: AIResult) -> "DispatchOutcome":
        return cls(result=result)

    @classmethod
    def close_now(cls) -> "DispatchOutcome":
        return cls(result=None)

    @property
    def closes(self) -> bool:
        return self.result is None


@dataclass
class PopupSession:
    """Aggregate root for one popup instance; written only by PopupController."""

    fragment: ContentFragment
    actions: List[ActionSuggestion] = field(default_factory=list)
    loading_suggestions: bool = False
    active_result: Optional[AIResult] = None
    processing_action_id: Optional[str] = None
    user_interacted: bool = False
    mode: PopupMode = PopupMode.SELECTING

    @property
    def is_live(self) -> bool:
        return self.mode not in (PopupMode.CLOSING, PopupMode.CLOSED)

    def snapshot(self) -> "PopupSnapshot":
        return PopupSnapshot(
            content=self.fragment.content,
            content_type=self.fragment.content_type,
            actions=tuple(self.actions),
            loading_suggestions=self.loading_suggestions,
            active_result=self.active_result,
            processing_action_id=self.processing_action_id,
            user_interacted=self.user_interacted,
            mode=self.mode,
        )


@dataclass(frozen=True)
class PopupSnapshot:
    """Immutable view of a PopupSession handed to UI listeners."""

    content: str
    content_type: ContentType
    actions: tuple
    loading_suggestions: bool
    active_result: Optional[AIResult]
    processing_action_id: Optional[str]
    user_interacted: bool
    mode: PopupMode

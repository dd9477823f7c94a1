"""AI engine adapter: implements SuggestionPort and AIProcessingPort.

Suggestions come from a short multiple-choice prompt whose answer is
matched by keyword or option number. When the backend fails or the
answer matches nothing, fixed per-type fallback suggestions are used.
"""

import sys
from typing import Any, Dict, List, Optional, Tuple

from clipmind.adapters.ai.chat_client import ChatClient
from clipmind.config import AIConfig
from clipmind.domain.errors import AIEngineError
from clipmind.domain.models import AIActionCandidate, ContentType

PROMPT_CONTENT_LIMIT = 300

# (action_id, label, icon, confidence, reason, match terms)
_Rule = Tuple[str, str, str, float, str, Tuple[str, ...]]

SUGGESTION_RULES: Dict[ContentType, Tuple[_Rule, ...]] = {
    ContentType.URL: (
        ("ai_summarize_webpage", "AI Summarize Webpage", "📖", 0.9,
         "AI suggested summarizing webpage", ("summarize", "abstract", "2")),
        ("ai_translate_webpage", "AI Translate", "🌐", 0.8,
         "AI suggested translating webpage", ("translate", "5")),
    ),
    ContentType.CODE: (
        ("ai_explain_code", "AI Explain Code", "💡", 0.95,
         "AI suggested explaining code functionality", ("explain", "1")),
        ("ai_optimize_code", "AI Optimize Code", "⚡", 0.8,
         "AI suggested code optimization", ("optimize", "2")),
        ("ai_add_comments", "AI Add Comments", "📝", 0.7,
         "AI suggested adding code comments", ("comment", "6")),
    ),
    ContentType.PLAIN_TEXT: (
        ("ai_translate", "AI Translate", "📋", 0.82,
         "AI suggested translating this text", ("translate", "1")),
        ("ai_summarize", "AI Summarize", "📋", 0.8,
         "AI suggested generating a summary", ("summarize", "abstract", "2")),
        ("ai_extract_keywords", "AI Extract Keywords", "🔑", 0.7,
         "AI suggested extracting key information", ("keyword", "3")),
    ),
}

FALLBACK_SUGGESTIONS: Dict[ContentType, Tuple[Tuple[str, str, float, str], ...]] = {
    ContentType.URL: (
        ("ai_summarize_webpage", "AI Summarize Webpage", 0.7,
         "Fallback suggestion: summarize webpage"),
    ),
    ContentType.CODE: (
        ("ai_explain_code", "AI Explain Code", 0.8,
         "Fallback suggestion: explain code functionality"),
    ),
    ContentType.PLAIN_TEXT: (
        ("ai_translate", "AI Translate", 0.8, "Fallback suggestion: translate text"),
        ("ai_summarize", "AI Summarize", 0.7, "Fallback suggestion: generate summary"),
    ),
}

TASK_PROMPTS: Dict[str, str] = {
    "translate": "Translate the following content into Traditional Chinese, "
                 "return only the translation:\n\n{content}",
    "summarize": "Summarize the following content concisely in english "
                 "(no more than 100 characters):\n\n{content}",
    "summarize_webpage": "Summarize the following content concisely in english "
                         "(no more than 100 characters):\n\n{content}",
    "explain_code": "Explain the functionality of this code snippet in english "
                    "(no more than 100 characters):\n\n{content}",
    "optimize_code": "Analyze this code and provide optimization suggestions "
                     "in english:\n\n{content}",
    "add_comments": "Add comments to this code snippet in english:\n\n{content}",
    "extract_keywords": "Extract keywords and important information from the "
                        "following content in english:\n\n{content}",
}
DEFAULT_TASK_PROMPT = "Analyze the following content in english:\n\n{content}"

_ANSWER_FORMAT = "DO NOT answer anything else, DO NOT explain"


def _log(msg: str):
    print(msg, file=sys.stderr)


def is_english(text: str) -> bool:
    """More than 70% of non-space characters are ASCII letters."""
    letters = sum(1 for c in text if c.isascii() and c.isalpha())
    total = sum(1 for c in text if not c.isspace())
    if total == 0:
        return False
    return letters / total > 0.7


def truncate_content(content: str, limit: int = PROMPT_CONTENT_LIMIT) -> str:
    if len(content) <= limit:
        return content
    return content[:limit] + "..."


def build_suggestion_prompt(content: str, content_type: ContentType) -> str:
    """Multiple-choice prompt asking for 2-3 next actions."""
    text = truncate_content(content)
    if content_type == ContentType.URL:
        return (
            f"Analyze the URL: {text}\n\n"
            "Choose 2-3 of the most appropriate next actions from the following:\n"
            "1. Open in browser\n2. Summarize webpage\n3. Search related info\n"
            "4. Save bookmark\n5. Translate webpage\n\n"
            f"Answer format: Action2,Action3,Action5, {_ANSWER_FORMAT}"
        )
    if content_type == ContentType.CODE:
        return (
            f"Analyze the code: {text}\n\n"
            "Choose 2-3 of the most appropriate next actions from the following:\n"
            "1. Explain code functionality\n2. Optimization suggestions\n3. Find errors\n"
            "4. Format code\n5. Search documentation\n6. Add comments\n\n"
            f"Answer format: Action1,Action2,Action5, {_ANSWER_FORMAT}"
        )
    if content_type == ContentType.PLAIN_TEXT:
        language = "English" if is_english(text) else "Traditional Chinese"
        return (
            f"Analyze {language} text: {text}\n\n"
            "Choose 2-3 of the most appropriate actions from the following:\n"
            "1. Translate\n2. Summarize\n3. Extract keywords\n4. Sentiment analysis\n"
            "5. Search related\n6. Rewrite/improve\n\n"
            f"Answer format: Action1,Action2,Action3, {_ANSWER_FORMAT}"
        )
    return (
        f"Analyze content: {text}\n\n"
        "Suggested actions:\n1. Search related info\n2. Save as note\n\n"
        f"Answer format: Action1,Action2, {_ANSWER_FORMAT}"
    )


def fallback_suggestions(content_type: ContentType) -> List[AIActionCandidate]:
    return [
        AIActionCandidate(
            id=action_id,
            label=label,
            icon="📋",
            hotkey=str(i + 4),
            confidence=confidence,
            reason=reason,
        )
        for i, (action_id, label, confidence, reason)
        in enumerate(FALLBACK_SUGGESTIONS.get(content_type, ()))
    ]


def parse_suggestions(response: str, content_type: ContentType) -> List[AIActionCandidate]:
    """Match the model's answer against the per-type options."""
    lowered = response.lower()
    suggestions = []
    for action_id, label, icon, confidence, reason, terms in SUGGESTION_RULES.get(content_type, ()):
        if any(term in lowered for term in terms):
            suggestions.append(AIActionCandidate(
                id=action_id,
                label=label,
                icon=icon,
                hotkey=str(len(suggestions) + 4),
                confidence=confidence,
                reason=reason,
            ))
    if not suggestions:
        return fallback_suggestions(content_type)
    return suggestions


def build_task_prompt(task_type: str, content: str) -> str:
    return TASK_PROMPTS.get(task_type, DEFAULT_TASK_PROMPT).format(content=content)


class AIEngine:
    """Chat-backed suggestion and processing engine."""

    def __init__(self, config: Optional[AIConfig] = None, client: Optional[ChatClient] = None):
        self._config = config or AIConfig()
        self._client = client or ChatClient(self._config)

    def pick_model(self, task_type: str) -> str:
        models = self._config.models
        return models.get(task_type) or models.get("default") or ""

    async def fetch_suggestions(self, content: str, content_type: str) -> List[AIActionCandidate]:
        parsed_type = ContentType.parse(content_type)
        _log(f"[ai] predicting actions for {parsed_type.value}")
        prompt = build_suggestion_prompt(content, parsed_type)
        try:
            response = await self._client.complete(prompt, self.pick_model("default"))
        except AIEngineError as e:
            _log(f"[ai] suggestion call failed, using fallback: {e}")
            return fallback_suggestions(parsed_type)
        suggestions = parse_suggestions(response, parsed_type)
        _log(f"[ai] {len(suggestions)} suggestion(s)")
        return suggestions

    async def process_task(self, task_type: str, content: str, parameters: Dict[str, Any]) -> str:
        _log(f"[ai] running task {task_type!r}")
        prompt = build_task_prompt(task_type, content)
        return await self._client.complete(prompt, self.pick_model(task_type))

    async def test_connection(self) -> bool:
        return await self._client.ping(self.pick_model("default"))

"""Agent step data model.

Plans and steps come from the external planning service and are treated
as untrusted input: parsing validates the tool names and field types but
nothing else.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class AgentTool(Enum):
    """Tools a step can invoke."""
    PYTHON = "Python"
    DWSIM = "DWSIM"
    DATA_ANALYSIS = "DataAnalysis"
    FINAL_ANSWER = "FinalAnswer"
    VISUALIZATION = "Visualization"


def _optional_str(data: Dict[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Field '{key}' must be a string")
    return value


@dataclass
class AgentStep:
    """One tool invocation proposed by the agent."""
    thought: str
    tool: AgentTool
    tool_input: Optional[str] = None
    tool_output: Optional[str] = None
    is_final_answer: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        d: Dict[str, Any] = {
            "thought": self.thought,
            "tool": self.tool.value,
            "is_final_answer": self.is_final_answer,
        }
        if self.tool_input is not None:
            d["tool_input"] = self.tool_input
        if self.tool_output is not None:
            d["tool_output"] = self.tool_output
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgentStep":
        """Create from dictionary.

        Raises:
            ValueError: If the tool is unknown or a field has the wrong type
        """
        try:
            tool = AgentTool(data.get("tool"))
        except ValueError:
            valid = [t.value for t in AgentTool]
            raise ValueError(f"Invalid tool '{data.get('tool')}'. Valid: {valid}")

        return cls(
            thought=str(data.get("thought", "")),
            tool=tool,
            tool_input=_optional_str(data, "tool_input"),
            tool_output=_optional_str(data, "tool_output"),
            is_final_answer=bool(data.get("is_final_answer", False)),
        )


@dataclass
class AgentResponse:
    """A plan and the steps that carry it out."""
    plan: List[str] = field(default_factory=list)
    steps: List[AgentStep] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"plan": list(self.plan), "steps": [s.to_dict() for s in self.steps]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgentResponse":
        """Create from dictionary."""
        return cls(
            plan=[str(p) for p in data.get("plan", [])],
            steps=[AgentStep.from_dict(s) for s in data.get("steps", [])],
        )

    @classmethod
    def from_json(cls, text: str) -> "AgentResponse":
        """Parse the planning service's JSON payload."""
        return cls.from_dict(json.loads(text))


@dataclass
class ImageAttachment:
    """Image passed through to the planning service unmodified."""
    data: str  # base64 encoded
    mime_type: str

    def __post_init__(self):
        if not self.mime_type.startswith("image/"):
            raise ValueError(f"Invalid file type '{self.mime_type}'. Please upload an image.")


@dataclass
class UserMessage:
    """A user chat message, optionally with an image."""
    content: str
    image: Optional[ImageAttachment] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the planning service's message shape."""
        d: Dict[str, Any] = {"role": "user", "content": self.content}
        if self.image is not None:
            d["image"] = {"data": self.image.data, "mime_type": self.image.mime_type}
        return d

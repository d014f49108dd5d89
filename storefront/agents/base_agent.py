"""BaseAgent: memory, tool registry and the prompt -> orchestrator -> tool-call loop."""
import json
import random
import re
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional

from ..app.ai_orchestrator import AIOrchestrator, clip_prompt
from ..schemas.ai_models import AIRequest
from ..utils.logger import get_logger

logger = get_logger("agents")

TOOL_CALL_RE = re.compile(r"TOOL_CALL:\s*(\w+)\((.*?)\)")
MEMORY_SIZE = 20
PROMPT_MEMORY = 5


@dataclass
class AgentConfig:
    name: str
    role: str
    system_prompt: str
    capabilities: List[str]
    priority: str = "medium"


@dataclass
class Tool:
    name: str
    description: str
    parameters: Dict[str, str]
    execute: Callable[[Dict[str, Any]], Any]


@dataclass
class MemoryEntry:
    type: str  # user | system | tool
    content: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class BaseAgent(ABC):
    def __init__(self, config: AgentConfig, orchestrator: AIOrchestrator, rng: Optional[random.Random] = None):
        self.config = config
        self.orchestrator = orchestrator
        self.memory: Deque[MemoryEntry] = deque(maxlen=MEMORY_SIZE)
        self.context: Dict[str, Any] = {}
        self.tools: Dict[str, Tool] = {}
        self.is_active = False
        self._rng = rng or random.Random()
        self.initialize_tools()

    @abstractmethod
    def initialize_tools(self) -> None:
        """Register this agent's tools with ``register_tool``."""
        ...

    def register_tool(self, tool: Tool) -> None:
        self.tools[tool.name] = tool

    def add_to_memory(self, entry_type: str, content: str) -> None:
        self.memory.append(MemoryEntry(type=entry_type, content=content))

    def process_message(self, message: str, context: Optional[Dict[str, Any]] = None) -> str:
        self.is_active = True
        try:
            self.add_to_memory("user", message)
            request = AIRequest(
                prompt=clip_prompt(self.build_prompt(message, context)),
                max_tokens=500,
                temperature=0.7,
                priority=self.config.priority,
            )
            response = self.orchestrator.process_request(request)
            processed = self.process_tool_calls(response.content)
            self.add_to_memory("system", processed)
            return processed
        except Exception as e:
            logger.error(f"[AGENT] {self.config.name} failed: {e}")
            return self.fallback_response(message)
        finally:
            self.is_active = False

    def build_prompt(self, message: str, context: Optional[Dict[str, Any]] = None) -> str:
        recent = list(self.memory)[-PROMPT_MEMORY:]
        memory_context = "\n".join(f"{m.type}: {m.content}" for m in recent)
        extra = f"ADDITIONAL CONTEXT: {json.dumps(context, default=str)}" if context else ""

        return f"""{self.config.system_prompt}

ROLE: {self.config.role}
CAPABILITIES: {', '.join(self.config.capabilities)}
AVAILABLE TOOLS: {', '.join(self.tools)}

RECENT CONTEXT:
{memory_context}

{extra}

USER MESSAGE: {message}

Please respond appropriately using your role and capabilities. If you need to use tools, format your response with tool calls in this format:
TOOL_CALL: tool_name(parameter1=value1, parameter2=value2)

RESPONSE:"""

    @staticmethod
    def parse_tool_params(params_str: str) -> Dict[str, str]:
        params = {}
        for pair in params_str.split(","):
            key, sep, value = pair.partition("=")
            key, value = key.strip(), value.strip()
            if sep and key and value:
                params[key] = value.replace('"', "").replace("'", "")
        return params

    def process_tool_calls(self, response: str) -> str:
        processed = response
        for match in TOOL_CALL_RE.finditer(response):
            name, params_str = match.group(1), match.group(2)
            tool = self.tools.get(name)
            if tool is None:
                continue
            try:
                result = tool.execute(self.parse_tool_params(params_str))
                rendered = json.dumps(result, default=str)
                processed = processed.replace(match.group(0), f"[{name} executed: {rendered}]", 1)
                self.add_to_memory("tool", f"{name}: {rendered}")
            except Exception as e:
                logger.warning(f"[AGENT] tool {name} failed: {e}")
                processed = processed.replace(match.group(0), f"[{name} failed: {e}]", 1)
        return processed

    def fallback_response(self, message: str) -> str:
        return self._rng.choice([
            f'I understand your request about "{message[:50]}..." but I\'m experiencing technical difficulties. Let me try a different approach.',
            "I'm currently unable to process that request fully, but I can provide some general guidance based on what you're asking.",
            "There seems to be a temporary issue with my processing. Could you rephrase your request or try again?",
        ])

    def get_status(self) -> Dict[str, Any]:
        return {
            "name": self.config.name,
            "role": self.config.role,
            "isActive": self.is_active,
            "memorySize": len(self.memory),
            "capabilities": list(self.config.capabilities),
            "tools": list(self.tools),
        }

    def set_context(self, key: str, value: Any) -> None:
        self.context[key] = value

    def get_context(self, key: str) -> Any:
        return self.context.get(key)

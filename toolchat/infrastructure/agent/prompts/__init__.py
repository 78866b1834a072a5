from .system_prompt import SYSTEM_PROMPT_TEMPLATE, build_system_prompt

__all__ = ["SYSTEM_PROMPT_TEMPLATE", "build_system_prompt"]

"""Prompt templates for the HR assistant."""

from .system_prompts import EMPLOYEE_CONTEXT_PROMPT, HR_ASSISTANT_SYSTEM_PROMPT

__all__ = ["EMPLOYEE_CONTEXT_PROMPT", "HR_ASSISTANT_SYSTEM_PROMPT"]

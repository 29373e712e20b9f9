from __future__ import annotations

from typing import Any, Dict, List

SYSTEM_PROMPT = """
You are an expert General Coding Assistant.
Your task is to write high-quality, production-ready code.

Rules:
1. Return ONLY the code. Do not provide conversational filler (e.g., "Here is the code").
2. Do not wrap the output in a JSON object. Return raw text.
3. If you need to include explanations, use comments in the target language.
4. If you use markdown code blocks, I will strip them, so it's better to return plain text.
5. You support ALL programming languages (Python, JavaScript, C++, etc.).
"""

SYSTEM_INSTRUCTION_PREFIX = "System Instruction: "
ACKNOWLEDGEMENT = "// Acknowledged. I will return raw code."


def user_turn(text: str) -> Dict[str, Any]:
    return {"role": "user", "parts": [{"text": text}]}


def model_turn(text: str) -> Dict[str, Any]:
    return {"role": "model", "parts": [{"text": text}]}


def seed_history(system_prompt: str = SYSTEM_PROMPT) -> List[Dict[str, Any]]:
    """Two-turn preamble every session starts from: the instruction, then the model's ack."""
    return [
        user_turn(SYSTEM_INSTRUCTION_PREFIX + system_prompt),
        model_turn(ACKNOWLEDGEMENT),
    ]

#!/usr/bin/env python3
"""
Prompt templates for the handwriting classifier.
"""

# =============================================================================
# HANDWRITING CHECK - Strict yes/no on a child's attempt at one syllable
# =============================================================================

CHECK_HANDWRITING_PROMPT = """Look at this image of handwriting.
The user is a child trying to write the Turkish syllable "{target}".

Strictly evaluate if the handwriting legibly represents "{target}".
Ignore minor imperfections typical of a child's handwriting.
However, if it looks like a completely different letter, scribbles, or is empty, mark it as false.

Return JSON:
{{
  "isCorrect": true/false,
  "reason": "A very short explanation (max 5 words) if wrong"
}}"""


def build_check_prompt(target: str) -> str:
    return CHECK_HANDWRITING_PROMPT.format(target=target)

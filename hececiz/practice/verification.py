#!/usr/bin/env python3
"""
Verification gateway between a practice session and the handwriting classifier.

The gateway fails closed: whatever goes wrong on the way to a verdict
(no client, transport error, timeout, unreadable reply) comes back as a
negative CheckResult instead of an exception. An unreachable classifier
must never mark a drawing correct.
"""

import asyncio
import json
import logging
import re
from typing import Dict, Optional

from ..llm import BaseLLMClient, create_llm_client
from .prompts import build_check_prompt
from .state import CheckResult
from .surface import Snapshot

logger = logging.getLogger(__name__)


FAILURE_REASON = "Could not check the drawing"
MAX_REASON_LENGTH = 80


class VerificationError(Exception):
    """Raised inside the gateway when no usable verdict could be obtained"""


def extract_json(text: str) -> Dict:
    """Pull a JSON object out of a model reply, tolerating markdown fences"""
    if not text:
        raise VerificationError("Empty response from classifier")

    if '```json' in text:
        match = re.search(r'```json\s*(.*?)\s*```', text, re.DOTALL)
        if match:
            text = match.group(1)
    elif '```' in text:
        match = re.search(r'```\s*(.*?)\s*```', text, re.DOTALL)
        if match:
            text = match.group(1)

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise VerificationError(f"Unparseable classifier response: {e}") from e

    if not isinstance(data, dict):
        raise VerificationError("Classifier response is not a JSON object")
    return data


def parse_verdict(text: str) -> CheckResult:
    """Turn a classifier reply into a CheckResult; isCorrect must be a real boolean"""
    data = extract_json(text)

    is_correct = data.get('isCorrect')
    if not isinstance(is_correct, bool):
        raise VerificationError(f"Missing or non-boolean isCorrect: {is_correct!r}")

    reason = data.get('reason')
    if reason is not None:
        reason = str(reason).strip()[:MAX_REASON_LENGTH] or None

    return CheckResult(is_correct=is_correct, reason=reason)


class VerificationGateway:
    """Wraps one classification call per verify() with a non-throwing contract"""

    def __init__(self, client: Optional[BaseLLMClient], timeout: float = 30.0):
        self.client = client
        self.timeout = timeout

    @classmethod
    def from_config(cls, provider: str = None, model: str = None) -> 'VerificationGateway':
        """Build a gateway for the configured provider (client may be None)"""
        from ..config import get_config_value
        client = create_llm_client(provider, model)
        if client is None:
            logger.warning("No handwriting classifier configured; every check will fail")
        return cls(client, timeout=float(get_config_value('classifier_timeout')))

    def is_available(self) -> bool:
        return self.client is not None

    async def verify(self, snapshot: Snapshot, target_text: str) -> CheckResult:
        """Judge whether the snapshot shows target_text. Never raises."""
        try:
            if self.client is None:
                raise VerificationError("No classifier client")
            if snapshot is None:
                raise VerificationError("No drawing to check")

            response = await asyncio.wait_for(
                asyncio.to_thread(
                    self.client.classify_image,
                    snapshot.data,
                    snapshot.mime_type,
                    build_check_prompt(target_text),
                ),
                timeout=self.timeout,
            )
            result = parse_verdict(response.content)
            logger.debug("Verdict for %s: %s", target_text, result)
            return result

        except Exception as e:
            logger.warning("Handwriting check for %s failed: %s", target_text, e)
            return CheckResult(is_correct=False, reason=FAILURE_REASON)

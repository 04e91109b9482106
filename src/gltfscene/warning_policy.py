"""Coded export diagnostics and the policy that routes them.

Each code names a degenerate-but-tolerated input. By default a
``GltfSceneWarning`` is issued; a ``WarningPolicy`` can drop a code or turn it
into a ``ValidationError``.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass

from gltfscene.errors import ValidationError

WARNING_CODES: dict[str, str] = {
    "W01": "animation track without keyframes skipped",
    "W02": "skin skeleton root emitted out of band",
    "W03": "mesh without faces emitted with no primitives",
}


def describe_codes() -> str:
    """Human-readable ``W01 (...), W02 (...)`` listing for error messages."""
    return ", ".join(f"{code} ({text})" for code, text in sorted(WARNING_CODES.items()))


class GltfSceneWarning(UserWarning):
    """Warning with a machine-readable code and its description."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.description = WARNING_CODES[code]
        super().__init__(f"[{code}] {message}")


@dataclass(frozen=True)
class WarningPolicy:
    """Per-code handling: ``suppress`` wins over ``warn_as_error``."""

    warn_as_error: frozenset[str] = frozenset()
    suppress: frozenset[str] = frozenset()

    def action(self, code: str) -> str:
        if code in self.suppress:
            return "ignore"
        if code in self.warn_as_error:
            return "error"
        return "warn"


def emit_warning(code: str, message: str, *, policy: WarningPolicy | None = None) -> None:
    """Report ``code`` for the encoder that detected it, honouring ``policy``."""
    action = policy.action(code) if policy is not None else "warn"
    if action == "ignore":
        return
    if action == "error":
        raise ValidationError(f"[{code}] {message} ({WARNING_CODES[code]}, escalated to error)")

    warnings.warn(GltfSceneWarning(code, message), stacklevel=3)


def parse_code_list(raw: str) -> frozenset[str]:
    """Parse a comma-separated string of W-codes, case-insensitively.

    Raises ``ValueError`` for unknown codes.
    """
    codes: set[str] = set()
    for token in raw.split(","):
        token = token.strip().upper()
        if not token:
            continue
        if token not in WARNING_CODES:
            raise ValueError(f"Unknown warning code: {token!r}; known codes: {describe_codes()}")
        codes.add(token)
    return frozenset(codes)

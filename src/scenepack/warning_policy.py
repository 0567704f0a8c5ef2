"""Coded diagnostics for writer sessions, with suppress / escalate controls."""

from __future__ import annotations

import warnings
from dataclasses import dataclass

from scenepack.errors import ValidationError

WARNING_CODES: dict[str, str] = {
    "W01": "empty binary payload placed",
    "W02": "texture has no MIME type",
    "W03": "texture is not referenced by any material",
}

KNOWN_CODES: frozenset[str] = frozenset(WARNING_CODES)


class ScenepackWarning(UserWarning):
    """Warning carrying one of the ``WARNING_CODES`` keys."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(f"[{code}] {message}")


@dataclass(frozen=True)
class WarningPolicy:
    """Per-code handling: drop (``suppress``) or raise (``warn_as_error``)."""

    warn_as_error: frozenset[str] = frozenset()
    suppress: frozenset[str] = frozenset()


def emit_warning(code: str, message: str, *, policy: WarningPolicy | None = None) -> None:
    """Report a diagnostic for ``code``.

    Suppressed codes are dropped, escalated codes raise ``ValidationError``,
    everything else goes through ``warnings.warn`` as a ``ScenepackWarning``.
    """
    if code not in KNOWN_CODES:
        raise ValueError(f"Unknown warning code: {code!r}")
    if policy is not None:
        if code in policy.suppress:
            return
        if code in policy.warn_as_error:
            raise ValidationError(f"[{code}] {message}")

    warnings.warn(ScenepackWarning(code, message), stacklevel=3)


def parse_code_list(raw: str) -> frozenset[str]:
    """Parse ``"W01, w03"`` into ``{"W01", "W03"}``.

    Raises ``ValueError`` for codes outside ``KNOWN_CODES``.
    """
    codes = {token.strip().upper() for token in raw.split(",") if token.strip()}
    unknown = sorted(codes - KNOWN_CODES)
    if unknown:
        raise ValueError(
            f"Unknown warning code(s): {', '.join(unknown)} (known: {sorted(KNOWN_CODES)})"
        )
    return frozenset(codes)


def build_policy(warn_as_error: str | None, suppress: str | None) -> WarningPolicy | None:
    """Build a policy from two comma-separated code lists, or None if both unset."""
    if warn_as_error is None and suppress is None:
        return None
    return WarningPolicy(
        warn_as_error=parse_code_list(warn_as_error) if warn_as_error else frozenset(),
        suppress=parse_code_list(suppress) if suppress else frozenset(),
    )

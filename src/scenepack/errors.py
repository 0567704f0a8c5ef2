"""Custom exception hierarchy for Scenepack."""


class ScenepackError(Exception):
    """Base exception for all Scenepack errors."""


class ParseError(ScenepackError):
    """Raised when YAML parsing or schema deserialization fails."""


class ValidationError(ScenepackError):
    """Raised when semantic validation fails (unknown ids, bad hierarchy, etc.)."""


class NamingConflictError(ScenepackError):
    """Raised when two distinct objects claim the same external resource name."""


class DanglingReferenceError(ScenepackError):
    """Raised when a definition references an index that was never allocated."""


class SessionStateError(ScenepackError):
    """Raised when a writer session is used out of order (e.g. finalized twice)."""


class ExportError(ScenepackError):
    """Raised when glTF/GLB export fails."""

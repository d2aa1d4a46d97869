"""
Error hierarchy for the signer provider.

Every error that can reach a request callback derives from ProviderError.
ConfigurationError is the only one raised synchronously (at construction).
"""

from __future__ import annotations

from typing import Any, Optional


class ProviderError(RuntimeError):
    code: int = -32603

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": str(self)}


class ConfigurationError(ProviderError, ValueError):
    code = -32602


class CapabilityError(ProviderError):
    code = -32000

    def __init__(self, message: str, method: Optional[str] = None) -> None:
        super().__init__(message)
        self.method = method


class TransportError(ProviderError):
    code = -32001

    def __init__(self, message: str, error: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.error = error

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return dict(self.error)
        return super().to_dict()


class PipelineError(ProviderError):
    code = -32002

    def __init__(self, message: str, step: str) -> None:
        super().__init__(message)
        self.step = step

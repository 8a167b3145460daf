# SPDX-License-Identifier: LGPL-3.0-or-later
# driverprov/core/exceptions.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

REDACTED = "***REDACTED***"


def _safe_int(x: Any, default: int = 1) -> int:
    try:
        return int(x)
    except Exception:
        return default


def _clamp_exit_code(code: int) -> int:
    # Exit codes are 0..255 on every platform we care about.
    if code < 0:
        return 1
    if code > 255:
        return 255
    return code


def _one_line(s: str, limit: int = 600) -> str:
    s = (s or "").strip().replace("\r", " ").replace("\n", " ")
    s = " ".join(s.split())
    return s if len(s) <= limit else (s[: limit - 3] + "...")


_SECRET_KEY_PARTS = (
    "pass",
    "secret",
    "token",
    "apikey",
    "api_key",
    "auth",
    "cookie",
    "bearer",
    "private",
)


def _is_secret_key(k: str) -> bool:
    ks = (k or "").lower()
    return any(p in ks for p in _SECRET_KEY_PARTS)


def redact(obj: Any) -> Any:
    """Return a copy of obj with secret-looking mapping keys masked (recursive)."""
    if isinstance(obj, dict):
        return {k: (REDACTED if _is_secret_key(str(k)) else redact(v)) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return type(obj)(redact(v) for v in obj)
    return obj


def _format_context_compact(ctx: Dict[str, Any]) -> str:
    # Stable order, redaction, single-line.
    safe = redact(ctx)
    return ", ".join(f"{k}={safe[k]!r}" for k in sorted(safe.keys()))


@dataclass(eq=False)
class DriverProvError(Exception):
    """
    Base project error with:
      - stable fields for reporting/JSON
      - readable __str__ (what users see)
      - an exit code honored by main()
      - a retryable flag consulted by the retry wrapper
    """
    code: int = 1
    msg: str = "error"
    cause: Optional[BaseException] = None
    context: Optional[Dict[str, Any]] = None
    retryable: bool = False

    def __post_init__(self) -> None:
        self.code = _clamp_exit_code(_safe_int(self.code, default=1))
        self.msg = _one_line(self.msg) or self.__class__.__name__
        if self.context is None:
            self.context = {}
        super().__init__(self.msg)
        self.args = (self.msg,)

    def with_context(self, **ctx: Any) -> "DriverProvError":
        assert self.context is not None
        self.context.update(ctx)
        return self

    def user_message(self, *, include_context: bool = False, include_cause: bool = False) -> str:
        parts = [self.msg or self.__class__.__name__]

        if include_context and self.context:
            parts.append(f"[{_one_line(_format_context_compact(self.context), limit=600)}]")

        if include_cause and self.cause is not None:
            parts.append(f"(cause: {type(self.cause).__name__}: {_one_line(str(self.cause))})")

        return " ".join(parts)

    def __str__(self) -> str:
        return self.user_message(include_context=False, include_cause=False)

    def to_dict(self, *, include_cause: bool = False) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "type": self.__class__.__name__,
            "code": self.code,
            "message": self.msg,
            "context": redact(self.context or {}),
        }
        if include_cause and self.cause is not None:
            d["cause"] = {"type": type(self.cause).__name__, "message": _one_line(str(self.cause))}
        return d


class ConfigError(DriverProvError):
    """Invalid or incomplete run configuration (flags, config files, environment)."""


class ResolutionError(DriverProvError):
    """The hardware model could not be mapped to a manifest."""


class ManifestError(DriverProvError):
    """The manifest is unreachable, not JSON, or missing required fields."""


class ReleaseNotFoundError(DriverProvError):
    """No release with the requested tag, or the caller cannot see it."""


class AssetNotFoundError(DriverProvError):
    """The release has no asset with the requested name."""


class DownloadError(DriverProvError):
    """Transport failure or non-success status while fetching bytes."""


class ExtractionError(DriverProvError):
    """Archive is corrupt, unsupported, unsafe, or the destination is not writable."""


class NoDriversFoundError(DriverProvError):
    """The extraction tree holds no driver descriptors."""


class UtilityNotFoundError(DriverProvError):
    """pnputil.exe could not be located."""


class MarkerWriteError(DriverProvError):
    """The completion marker could not be written. Logged, never raised to main()."""


EXIT_OK = 0
EXIT_INSTALL_FAILURES = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130


def wrap_config(msg: str, exc: Optional[BaseException] = None, **context: Any) -> ConfigError:
    return ConfigError(code=EXIT_CONFIG, msg=msg, cause=exc, context=context or None)


def wrap_resolution(msg: str, exc: Optional[BaseException] = None, **context: Any) -> ResolutionError:
    return ResolutionError(code=10, msg=msg, cause=exc, context=context or None)


def wrap_manifest(
    msg: str, exc: Optional[BaseException] = None, *, retryable: bool = False, **context: Any
) -> ManifestError:
    return ManifestError(code=11, msg=msg, cause=exc, context=context or None, retryable=retryable)


def wrap_release_not_found(msg: str, exc: Optional[BaseException] = None, **context: Any) -> ReleaseNotFoundError:
    return ReleaseNotFoundError(code=12, msg=msg, cause=exc, context=context or None)


def wrap_asset_not_found(msg: str, exc: Optional[BaseException] = None, **context: Any) -> AssetNotFoundError:
    return AssetNotFoundError(code=13, msg=msg, cause=exc, context=context or None)


def wrap_download(
    msg: str, exc: Optional[BaseException] = None, *, retryable: bool = True, **context: Any
) -> DownloadError:
    return DownloadError(code=14, msg=msg, cause=exc, context=context or None, retryable=retryable)


def wrap_extraction(msg: str, exc: Optional[BaseException] = None, **context: Any) -> ExtractionError:
    return ExtractionError(code=15, msg=msg, cause=exc, context=context or None)


def wrap_no_drivers(msg: str, **context: Any) -> NoDriversFoundError:
    return NoDriversFoundError(code=16, msg=msg, context=context or None)


def wrap_utility_not_found(msg: str, **context: Any) -> UtilityNotFoundError:
    return UtilityNotFoundError(code=17, msg=msg, context=context or None)


def wrap_marker(msg: str, exc: Optional[BaseException] = None, **context: Any) -> MarkerWriteError:
    return MarkerWriteError(code=18, msg=msg, cause=exc, context=context or None)


def format_exception_for_cli(e: BaseException, *, verbose: int = 0) -> str:
    """
    One-liner output for CLI.

    verbose=0: just message
    verbose=1: message + compact context (if any)
    verbose>=2: message + context + cause
    """
    if isinstance(e, DriverProvError):
        return e.user_message(
            include_context=(verbose >= 1),
            include_cause=(verbose >= 2),
        )

    if verbose >= 2:
        return f"{type(e).__name__}: {_one_line(str(e))}"
    return _one_line(str(e)) or type(e).__name__

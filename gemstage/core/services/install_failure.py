"""
Install failure analysis — classify a failed ``bundle install``.

Bundler exits with a distinct status per error class, so the exit
code is checked first.  When it is unknown (wrapped binstubs, older
Bundler releases), stderr is matched against known messages.
"""

from __future__ import annotations

import re

from gemstage.core.models.install import FailureKind

# Bundler::BundlerError subclasses and their status_code
_EXIT_CODES: dict[int, FailureKind] = {
    4: FailureKind.MANIFEST,    # GemfileError, GemfileEvalError
    5: FailureKind.UNPACK,      # InstallError
    6: FailureKind.RESOLVE,     # VersionConflict, SolveFailure
    7: FailureKind.RESOLVE,     # GemNotFound
    8: FailureKind.UNPACK,      # InstallHookError
    10: FailureKind.MANIFEST,   # GemfileNotFound
    11: FailureKind.FETCH,      # GitError
    13: FailureKind.UNPACK,     # PathError
    14: FailureKind.MANIFEST,   # GemspecError
    15: FailureKind.TOOLING,    # InvalidOption
    16: FailureKind.MANIFEST,   # ProductionError (frozen Gemfile/lock mismatch)
    17: FailureKind.FETCH,      # HTTPError and friends
    18: FailureKind.RESOLVE,    # RubyVersionMismatch
    20: FailureKind.MANIFEST,   # LockfileError
    21: FailureKind.RESOLVE,    # CyclicDependencyError
    22: FailureKind.MANIFEST,   # GemfileLockNotFound
    23: FailureKind.UNPACK,     # PermissionError
    26: FailureKind.UNPACK,     # TemporaryResourceError
    27: FailureKind.UNPACK,     # ReadOnlyFileSystemError
    28: FailureKind.UNPACK,     # NoSpaceOnDeviceError
    30: FailureKind.UNPACK,     # SudoNotPermittedError
    34: FailureKind.FETCH,      # APIResponseMismatchError
    35: FailureKind.FETCH,      # APIResponseInvalidDependenciesError
}

# Checked in order; first match wins
_STDERR_PATTERNS: list[tuple[re.Pattern[str], FailureKind]] = [
    (re.compile(r"Could not locate Gemfile|Gemfile syntax error|There was an error parsing", re.I),
     FailureKind.MANIFEST),
    (re.compile(r"Your lockfile is unreadable|merge conflicts? in your lockfile"
                r"|deployment mode after changing\s+your Gemfile|frozen mode", re.I),
     FailureKind.MANIFEST),
    (re.compile(r"Could not find compatible versions|Bundler could not find compatible versions"
                r"|could not find gem '|Could not find gem '", re.I),
     FailureKind.RESOLVE),
    (re.compile(r"Could not reach host|Could not fetch specs from|Network error"
                r"|Net::OpenTimeout|SocketError|Failed to open TCP connection"
                r"|Git error:", re.I),
     FailureKind.FETCH),
    (re.compile(r"An error occurred while installing|Failed to build gem native extension"
                r"|Gem::Package::FormatError|There was an error while trying to write to", re.I),
     FailureKind.UNPACK),
]


def classify_failure(
    return_code: int | None,
    stderr: str = "",
    stdout: str = "",
) -> FailureKind:
    """Map a failed Bundler run onto a FailureKind."""
    if return_code is not None and return_code in _EXIT_CODES:
        return _EXIT_CODES[return_code]

    # Bundler writes most errors to stderr, but some land on stdout
    text = f"{stderr}\n{stdout}"
    for pattern, kind in _STDERR_PATTERNS:
        if pattern.search(text):
            return kind

    return FailureKind.UNKNOWN


def summarize_failure(
    error: str | None,
    stderr: str = "",
    stdout: str = "",
    max_lines: int = 12,
) -> str:
    """Build a human-readable failure message.

    Prefers the last non-empty lines of stderr, since Bundler prints
    the actionable part of its report at the end.
    """
    detail = stderr.strip() or stdout.strip()
    if detail:
        lines = [ln for ln in detail.splitlines() if ln.strip()]
        tail = "\n".join(lines[-max_lines:])
        if error and error not in tail:
            return f"{error}\n{tail}"
        return tail
    return error or "bundle install failed"

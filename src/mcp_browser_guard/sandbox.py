"""
File access sandbox for tools that read or write local files.

Every path a tool is about to touch goes through ``PathSandbox.validate_path``
first. The policy is immutable after construction and validation has no side
effects, so one sandbox can be shared by concurrent tool calls without locking.

Resolution order for a candidate path:
    1. clean + absolute
    2. strict symlink resolution
    3. if the target does not exist yet, resolve whatever prefix does exist
       (so a write through a symlinked directory is judged by its real
       destination)
    4. if that fails too, the plain absolute path

The deny list is checked before the allow rules and always wins.
"""

import os
import tempfile
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from .constants import DEFAULT_MAX_FILE_SIZE
from .errors import AccessDeniedError, FileSizeExceededError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessPolicy:
    """
    Attributes:
        allowed_paths: Directory prefixes that may be accessed.
        denied_paths: Directory prefixes that may never be accessed (overrides allowed_paths).
        restrict_to_working_dir: Only the process working directory may be accessed.
        allow_temp_files: The system temporary directory may be accessed.
        max_file_size: Largest payload a write may carry, in bytes (0 = no limit).
    """

    allowed_paths: Tuple[str, ...] = ()
    denied_paths: Tuple[str, ...] = ()
    restrict_to_working_dir: bool = False
    allow_temp_files: bool = False
    max_file_size: int = 0

    def __post_init__(self):
        object.__setattr__(self, "allowed_paths", tuple(p for p in self.allowed_paths if p))
        object.__setattr__(self, "denied_paths", tuple(p for p in self.denied_paths if p))
        if self.max_file_size < 0:
            raise ValueError("max_file_size cannot be negative")

    @classmethod
    def default(cls) -> "AccessPolicy":
        """Working directory only, no temp dir, 10 MiB writes."""
        return cls(
            allowed_paths=(os.getcwd(),),
            restrict_to_working_dir=True,
            allow_temp_files=False,
            max_file_size=DEFAULT_MAX_FILE_SIZE,
        )

    @classmethod
    def from_config(cls, config: dict) -> "AccessPolicy":
        return cls(
            allowed_paths=tuple(config.get("allowed_paths") or ()),
            denied_paths=tuple(config.get("denied_paths") or ()),
            restrict_to_working_dir=bool(config.get("restrict_to_working_dir", False)),
            allow_temp_files=bool(config.get("allow_temp_files", False)),
            max_file_size=int(config.get("max_file_size") or 0),
        )

    def to_dict(self) -> dict:
        return {
            "allowed_paths": list(self.allowed_paths),
            "denied_paths": list(self.denied_paths),
            "restrict_to_working_dir": self.restrict_to_working_dir,
            "allow_temp_files": self.allow_temp_files,
            "max_file_size": self.max_file_size,
        }


def resolve_path(path: str) -> str:
    """Best-available real path for ``path``; never fails because the target is missing."""
    abs_path = os.path.abspath(os.path.normpath(path))
    try:
        return os.path.realpath(abs_path, strict=True)
    except (OSError, ValueError):
        pass
    try:
        return os.path.realpath(abs_path)
    except (OSError, ValueError):
        return abs_path


def _normalize_base(path: str) -> str:
    return os.path.normcase(resolve_path(path))


def is_path_under(target: str, base: str) -> bool:
    """True if target equals base or lies inside it; '/var/foobar' is not under '/var/foo'."""
    target = os.path.normcase(target)
    base = os.path.normcase(base)
    if target == base:
        return True
    prefix = base if base.endswith(os.sep) else base + os.sep
    return target.startswith(prefix)


@dataclass(frozen=True)
class PathSandbox:
    policy: AccessPolicy = field(default_factory=AccessPolicy.default)
    getcwd: Callable[[], str] = os.getcwd

    def validate_path(self, path: Optional[str], operation: str) -> str:
        """
        Check ``path`` against the policy before ``operation`` touches it.

        Returns:
            The resolved absolute path that the caller should use for the I/O.

        Raises:
            AccessDeniedError: If the path is empty, malformed, denied, or outside the allowed set.
        """
        if not path:
            raise AccessDeniedError("", operation, "path cannot be empty")
        if "\x00" in path:
            raise AccessDeniedError(path, operation, "path contains a NUL byte")

        real_path = resolve_path(path)

        if self._is_denied(real_path):
            logger.warning(f"Denied {operation} on {real_path}: path is in deny list")
            raise AccessDeniedError(real_path, operation, f"path {real_path} is in deny list")

        if not self._is_allowed(real_path):
            logger.warning(f"Denied {operation} on {real_path}: path is not in allowed paths")
            raise AccessDeniedError(real_path, operation, f"path {real_path} is not in allowed paths")

        logger.debug(f"Allowed {operation} on {real_path}")
        return real_path

    def validate_size(self, size: int) -> None:
        limit = self.policy.max_file_size
        if limit > 0 and size > limit:
            raise FileSizeExceededError(size, limit)

    def validate_write(self, path: Optional[str], size: int, operation: str = "write") -> str:
        """Path and size check for a write, in that order."""
        real_path = self.validate_path(path, operation)
        self.validate_size(size)
        return real_path

    def allowed_roots(self) -> List[str]:
        """Informational list of the roots the policy admits."""
        roots: List[str] = []
        if self.policy.restrict_to_working_dir:
            try:
                roots.append(self.getcwd())
            except OSError:
                pass
            return roots
        if self.policy.allow_temp_files:
            roots.append(tempfile.gettempdir())
        roots.extend(self.policy.allowed_paths)
        return roots

    def _is_denied(self, path: str) -> bool:
        return _matches_any(path, self.policy.denied_paths)

    def _is_allowed(self, path: str) -> bool:
        policy = self.policy
        if policy.restrict_to_working_dir:
            try:
                cwd = self.getcwd()
            except OSError:
                logger.warning("Could not determine working directory; denying access")
                return False
            if not cwd:
                return False
            return is_path_under(path, _normalize_base(cwd))

        if policy.allow_temp_files and is_path_under(path, _normalize_base(tempfile.gettempdir())):
            return True

        if _matches_any(path, policy.allowed_paths):
            return True

        return not policy.allowed_paths and not policy.allow_temp_files


def _matches_any(path: str, bases: Iterable[str]) -> bool:
    return any(is_path_under(path, _normalize_base(base)) for base in bases)


__all__ = [
    "AccessPolicy",
    "PathSandbox",
    "resolve_path",
    "is_path_under",
]

"""
Unified exception definitions
"""
from typing import List, Optional


class DeploySyncError(Exception):
    """Base exception class"""
    pass


class ConfigError(DeploySyncError):
    """Configuration error"""
    pass


class DescriptorError(DeploySyncError):
    """Build descriptor could not be parsed"""
    pass


class WatchError(DeploySyncError):
    """Watch backend error"""
    pass


class BuildError(DeploySyncError):
    """Build precondition or artifact error"""
    pass


class ExternalToolError(BuildError):
    """Compiler or build tool exited unsuccessfully"""

    def __init__(self, message: str, diagnostics: Optional[List[str]] = None, returncode: Optional[int] = None):
        super().__init__(message)
        self.diagnostics = diagnostics or []
        self.returncode = returncode


class ResourceBusyError(BuildError):
    """A file in the target is locked by another process"""
    pass


class BuildFailedError(BuildError):
    """Terminal failure of a deploy invocation"""

    def __init__(self, message: str, strategy: str, attempts: int, diagnostics: Optional[List[str]] = None):
        super().__init__(message)
        self.strategy = strategy
        self.attempts = attempts
        self.diagnostics = diagnostics or []

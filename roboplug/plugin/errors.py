"""
Plugin dispatch errors.

Every error raised while resolving or invoking a plugin's callable names the
offending package and the declared callable string.
"""


class DispatchError(Exception):
    """
    Base exception for plugin dispatch errors.

    Attributes:
        package_name: Name of the plugin package
        callable_ref: Declared callable string
    """

    def __init__(self, package_name: str, callable_ref: str | None, message: str):
        self.package_name = package_name
        self.callable_ref = callable_ref
        self.message = message
        super().__init__(f"{package_name} ({callable_ref}): {message}")


class MalformedCallableError(DispatchError):
    """Raised when a declaration or callable reference is malformed."""

    pass


class ClassNotFoundError(DispatchError):
    """Raised when the declared class cannot be located or is missing."""

    pass


class SourceLoadError(DispatchError):
    """Raised when the located source file fails to load."""

    pass


class ResolutionError(DispatchError):
    """Raised when resolving a callable fails for an unexpected reason."""

    pass


class InvocationError(DispatchError):
    """Raised when the plugin's own install method raises."""

    pass


class PluginBatchError(Exception):
    """
    Raised at the end of a run when one or more plugins failed.

    Attributes:
        failures: Every DispatchError collected during the run, in order
    """

    def __init__(self, failures: list[DispatchError]):
        self.failures = list(failures)
        lines = [f"{len(self.failures)} Robo plugin(s) failed to install:"]
        lines.extend(f"  - {failure}" for failure in self.failures)
        super().__init__("\n".join(lines))

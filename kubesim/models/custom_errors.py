class SimulatorError(Exception):
    """
    Base class of every domain error raised while interpreting a command.

    The message is already formatted the way the simulated tool prints it.
    """

    pass


class NotFoundError(SimulatorError):
    """
    Exception raised when a referenced resource does not exist.
    """

    def __init__(self, resource: str, name: str):
        self.resource = resource
        self.name = name
        super().__init__(f'Error from server (NotFound): {resource} "{name}" not found')


class AlreadyExistsError(SimulatorError):
    """
    Exception raised when creating a resource whose name is taken.
    """

    def __init__(self, resource: str, name: str):
        self.resource = resource
        self.name = name
        super().__init__(
            f'Error from server (AlreadyExists): {resource} "{name}" already exists'
        )


class ForbiddenError(SimulatorError):
    """
    Exception raised when mutating a protected resource.
    """

    def __init__(self, resource: str, name: str, reason: str):
        self.resource = resource
        self.name = name
        super().__init__(
            f'Error from server (Forbidden): {resource} "{name}" is forbidden: {reason}'
        )


class InvalidArgumentError(SimulatorError):
    """
    Exception raised for a missing or malformed argument, flag, kind or verb.
    """

    def __init__(self, message: str, prefix: str = "Error"):
        super().__init__(f"{prefix}: {message}" if prefix else message)


class UnsupportedError(SimulatorError):
    """
    Exception raised for commands that are recognized but not simulated.
    """

    def __init__(self, message: str):
        super().__init__(f"Error: {message}")

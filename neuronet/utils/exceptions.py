class NeuroNetError(Exception):
    pass


class NotFoundError(NeuroNetError):
    def __init__(self, kind: str, identifier: str) -> None:
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"{kind} not found: {identifier}")

    def __str__(self) -> str:
        return f"{self.kind.capitalize()} not found: {self.identifier}"


class InsufficientInputError(NeuroNetError):
    def __init__(self, message: str, required: int, available: int) -> None:
        self.message = message
        self.required = required
        self.available = available
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.message} (required {self.required}, got {self.available})"


class InvalidTransitionError(NeuroNetError):
    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot move from {current} to {target}")

    def __str__(self) -> str:
        return f"Invalid status transition: {self.current} -> {self.target}"


class SimulationError(NeuroNetError):
    def __init__(self, message: str, run_id: str = "") -> None:
        self.message = message
        self.run_id = run_id
        super().__init__(message)

    def __str__(self) -> str:
        run_info = f" in run {self.run_id}" if self.run_id else ""
        return f"Simulation failed{run_info}: {self.message}"

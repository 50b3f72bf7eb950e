# app/core/exceptions.py


class FoundationModuleLockedError(ValueError):
    """Raised when a FOUNDATION module would be switched off."""

    def __init__(self, module_code: str):
        self.module_code = module_code
        super().__init__(f"Foundation module '{module_code}' cannot be disabled")


class SimulationNotAllowedError(PermissionError):
    def __init__(self, role):
        self.role = role
        super().__init__(f"Role '{getattr(role, 'value', role)}' is not allowed to simulate other users")


class PersistenceError(RuntimeError):
    """The in-memory change stands but could not be written to storage."""


class SystemModuleNotFoundError(LookupError):
    def __init__(self, module_id):
        self.module_id = module_id
        super().__init__(f"Module '{module_id}' not found")

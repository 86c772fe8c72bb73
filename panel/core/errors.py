from __future__ import annotations


class AppError(Exception):
    pass


class BusinessError(AppError):
    pass


class ValidationError(BusinessError):
    pass


class UnsupportedSyncActionError(BusinessError):
    """La acción o el módulo de un elemento de la cola no tiene handler."""

    def __init__(self, module: str, action: str | None = None) -> None:
        self.module = module
        self.action = action
        if action is None:
            message = f"No hay handler para {module}"
        else:
            message = f"Acción no soportada para {module}: {action}"
        super().__init__(message)


class InfraError(AppError):
    pass


class PersistenceError(InfraError):
    pass


class ExternalServiceError(InfraError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransientExternalError(ExternalServiceError):
    pass

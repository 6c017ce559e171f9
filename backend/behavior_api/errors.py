"""
Error taxonomy shared by the routers.

Every error maps to one HTTP status and is rendered by the handlers in
``main.py`` as ``{"ok": false, "error": "<message>"}``.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = 400


class AuthError(AppError):
    status_code = 401


class PermissionDeniedError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class StoreError(AppError):
    status_code = 500

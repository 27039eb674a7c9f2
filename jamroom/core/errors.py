from fastapi import status


class JamRoomError(Exception):
    """Базовая ошибка предметной области"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(JamRoomError):
    """Некорректные или отсутствующие входные данные"""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class NotFoundError(JamRoomError):
    """Комната, луп или пользователь не найдены"""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ConflictError(JamRoomError):
    """Нарушение уникальности (например, занятое имя пользователя)"""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Already exists"


class AuthError(JamRoomError):
    """Неверные учетные данные"""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"


class InternalError(JamRoomError):
    """Сбой хранилища; детали не раскрываются клиенту"""

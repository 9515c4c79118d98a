"""User-facing notifications.

Components report outcomes through a ``Notifier`` instead of raising, so a
failed cart action never takes the page down. HTTP handlers use a
``NoticeCollector`` per request and return the notices with the response.
"""

from typing import Optional, Protocol

from services.storefront_service.schemas import Notice


class Notifier(Protocol):
    def success(self, message: str) -> None: ...

    def warning(self, message: str, code: Optional[str] = None) -> None: ...

    def error(self, message: str, code: Optional[str] = None) -> None: ...


class NoticeCollector:
    """Notifier that keeps notices in order for the caller to render."""

    def __init__(self):
        self.notices: list[Notice] = []

    def success(self, message: str) -> None:
        self.notices.append(Notice(level="success", message=message))

    def warning(self, message: str, code: Optional[str] = None) -> None:
        self.notices.append(Notice(level="warning", message=message, code=code))

    def error(self, message: str, code: Optional[str] = None) -> None:
        self.notices.append(Notice(level="error", message=message, code=code))

    @property
    def errors(self) -> list[Notice]:
        return [n for n in self.notices if n.level == "error"]

    def drain(self) -> list[Notice]:
        notices, self.notices = self.notices, []
        return notices

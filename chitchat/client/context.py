"""Session and theme state shared by the client views.

The context is passed explicitly to whatever needs it. initialize() resolves
an existing session on start; sign_out() clears it and notifies listeners.
"""

import enum
import logging
from typing import Callable, Optional

from chitchat.schemas.user import SessionRead

from .api import ChitChatClient, sign_in_or_sign_up
from .errors import NotAuthenticatedError

logger = logging.getLogger(__name__)


class Theme(str, enum.Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


Listener = Callable[["AppContext"], None]


class AppContext:
    def __init__(self, api: ChitChatClient, theme: Theme = Theme.SYSTEM):
        self.api = api
        self.theme = theme
        self.session: Optional[SessionRead] = None
        self._listeners: list[Listener] = []

    @property
    def signed_in(self) -> bool:
        return self.session is not None

    @property
    def handle(self) -> Optional[str]:
        """The user's shareable number, once the session is resolved."""
        if self.session and self.session.profile:
            return self.session.profile.unique_number
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    async def initialize(self) -> Optional[SessionRead]:
        self.session = await self.api.get_session()
        self._notify()
        return self.session

    async def refresh_session(self) -> Optional[SessionRead]:
        try:
            self.session = await self.api.get_session()
        except NotAuthenticatedError:
            self.session = None
        self._notify()
        return self.session

    async def sign_in(self, email: str, password: str) -> bool:
        """Signs in or signs up; returns True for a newly created account."""
        created = await sign_in_or_sign_up(self.api, email, password)
        await self.refresh_session()
        return created

    async def sign_out(self) -> None:
        try:
            await self.api.sign_out()
        finally:
            self.session = None
            self._notify()

    def set_theme(self, theme: Theme) -> None:
        if theme == self.theme:
            return
        self.theme = Theme(theme)
        self._notify()

    async def __aenter__(self) -> "AppContext":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self._listeners.clear()

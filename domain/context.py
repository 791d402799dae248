from config import Config
from domain.dom import Document
from domain.events import EventBus
from domain.state import StateManager


class AppContext:
    """Everything a component may reach, passed in explicitly at construction."""

    def __init__(
        self,
        *,
        config: Config | None = None,
        bus: EventBus | None = None,
        state: StateManager | None = None,
        document: Document | None = None,
        touch: bool = False,
    ) -> None:
        self.config = Config() if config is None else config
        self.bus = EventBus() if bus is None else bus
        self.state = (
            StateManager(self.bus, history_size=self.config.state_history_size)
            if state is None
            else state
        )
        self.document = Document() if document is None else document
        self.touch = touch

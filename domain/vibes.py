import logging
import random

from domain.events import EventBus
from domain.models import Vibe


logger = logging.getLogger(__name__)


VIBES: tuple[Vibe, ...] = (
    Vibe(
        name="Cozy Night In",
        emoji="🛋️",
        description="Comfort food, warm blankets, Netflix marathon",
        prompt="comforting, hearty, perfect for staying in on a cold night",
        color="#8B7355",
        image="/images/cozy_night.jpg",
    ),
    Vibe(
        name="Healthy & Fresh",
        emoji="🥗",
        description="Light, nutritious, energizing",
        prompt="healthy, fresh, light but satisfying, packed with vegetables",
        color="#7CB342",
        image="/images/healthy_fresh.jpg",
    ),
    Vibe(
        name="Spicy Adventure",
        emoji="🌶️",
        description="Bold flavors, exotic ingredients, heat",
        prompt="spicy, adventurous, bold flavors, exciting and intense",
        color="#D32F2F",
        image="/images/spicy_adventure.jpg",
    ),
    Vibe(
        name="Quick & Easy",
        emoji="⚡",
        description="Minimal effort, maximum flavor, under 30 mins",
        prompt="quick, easy, minimal cleanup, perfect for busy weeknights",
        color="#1976D2",
        image="/images/quick_easy.jpg",
    ),
    Vibe(
        name="Romantic Dinner",
        emoji="🕯️",
        description="Elegant, impressive, date night worthy",
        prompt="romantic, elegant, impressive but not too complicated",
        color="#E91E63",
        image="/images/romantic_dinner.jpg",
    ),
    Vibe(
        name="Hangover Cure",
        emoji="🤕",
        description="Soothing, greasy, restorative",
        prompt="comforting, greasy, perfect for curing a hangover",
        color="#FF6F00",
        image="/images/hangover_cure.jpg",
    ),
    Vibe(
        name="Summer Vibes",
        emoji="☀️",
        description="Grilling, fresh, light, outdoor friendly",
        prompt="fresh, summery, perfect for grilling or outdoor dining",
        color="#FFB300",
        image="/images/summer_vibes.jpg",
    ),
    Vibe(
        name="Comfort Food Classic",
        emoji="🍲",
        description="Nostalgic, hearty, like mom used to make",
        prompt="classic comfort food, nostalgic, hearty and satisfying",
        color="#6D4C41",
        image="/images/comfort_food.jpg",
    ),
)


class VibeEngine:
    """Deals vibes one at a time without repeats, for a bounded number of rounds.

    `get_next_vibe` returns `None` once the round limit is hit (or the catalog
    runs dry). That is the signal to move on to the recipe, not an error.
    """

    def __init__(
        self,
        vibes: tuple[Vibe, ...] | list[Vibe] = VIBES,
        *,
        max_rounds: int = 2,
        bus: EventBus | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.vibes = tuple(vibes)
        self.max_rounds = max_rounds
        self.bus = EventBus() if bus is None else bus
        self._rng = random.Random() if rng is None else rng
        self._pool: list[Vibe] = []
        self._used: set[str] = set()
        self.current_round = 0

    @property
    def is_exhausted(self) -> bool:
        return self.current_round >= self.max_rounds

    @property
    def remaining(self) -> int:
        return sum(1 for v in self.vibes if v.name not in self._used)

    def get_next_vibe(self) -> Vibe | None:
        if self.is_exhausted:
            return None

        if not self._pool:
            self._shuffle()
        if not self._pool:
            logger.info("Vibe catalog exhausted after %d rounds", self.current_round)
            return None

        vibe = self._pool.pop(0)
        self._used.add(vibe.name)
        self.current_round += 1

        self.bus.emit("vibe:selected", {"vibe": vibe, "round": self.current_round})
        self.bus.emit("round:changed", {"round": self.current_round})
        return vibe

    def _shuffle(self) -> None:
        # Only the unused remainder goes back in.
        self._pool = [v for v in self.vibes if v.name not in self._used]
        self._rng.shuffle(self._pool)
        self.bus.emit("vibes:shuffled", {"count": len(self._pool)})

    def reset(self) -> None:
        self._pool = []
        self._used.clear()
        self.current_round = 0
        self.bus.emit("vibe:reset")

    def all_vibes(self) -> list[Vibe]:
        return list(self.vibes)

    def get_vibe(self, name: str) -> Vibe | None:
        return next((v for v in self.vibes if v.name == name), None)

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class MarkerIcon(Enum):
    """Minimap marker classification. Only ENEMY_HERO markers are tracked."""
    ENEMY_HERO = "minimap_enemyicon"
    OTHER = "other"

    @classmethod
    def from_image(cls, image: Optional[str]) -> "MarkerIcon":
        if image == cls.ENEMY_HERO.value:
            return cls.ENEMY_HERO
        return cls.OTHER


@dataclass(frozen=True)
class MapState:
    name: Optional[str] = None
    match_id: Optional[str] = None
    game_time: Optional[int] = None
    clock_time: Optional[int] = None
    game_state: Optional[str] = None
    paused: Optional[bool] = None
    daytime: Optional[bool] = None


@dataclass(frozen=True)
class PlayerState:
    name: Optional[str] = None
    team_name: Optional[str] = None
    kills: Optional[int] = None
    deaths: Optional[int] = None
    assists: Optional[int] = None
    last_hits: Optional[int] = None
    denies: Optional[int] = None
    gold: Optional[int] = None
    net_worth: Optional[int] = None
    gpm: Optional[int] = None
    xpm: Optional[int] = None
    kill_list: Optional[Dict[str, int]] = None


@dataclass(frozen=True)
class HeroState:
    name: Optional[str] = None
    level: Optional[int] = None
    alive: Optional[bool] = None
    respawn_seconds: Optional[int] = None
    buyback_cost: Optional[int] = None
    buyback_cooldown: Optional[int] = None
    health: Optional[int] = None
    max_health: Optional[int] = None
    health_percent: Optional[int] = None
    mana: Optional[int] = None
    max_mana: Optional[int] = None
    mana_percent: Optional[int] = None
    xpos: Optional[int] = None
    ypos: Optional[int] = None

    @property
    def position(self) -> Optional[Tuple[int, int]]:
        if self.xpos is None or self.ypos is None:
            return None
        return (self.xpos, self.ypos)


@dataclass(frozen=True)
class AbilityState:
    name: Optional[str] = None
    level: Optional[int] = None
    can_cast: Optional[bool] = None
    passive: Optional[bool] = None
    ultimate: Optional[bool] = None
    cooldown: Optional[int] = None


@dataclass(frozen=True)
class BuildingState:
    health: int
    max_health: int


@dataclass(frozen=True)
class MinimapMarker:
    name: Optional[str]
    team: int
    xpos: int
    ypos: int
    icon: MarkerIcon = MarkerIcon.OTHER

    @property
    def position(self) -> Tuple[int, int]:
        return (self.xpos, self.ypos)


@dataclass(frozen=True)
class Snapshot:
    """One instant of match state as pushed by the game client. Never mutated."""
    map: Optional[MapState] = None
    player: Optional[PlayerState] = None
    hero: Optional[HeroState] = None
    abilities: Optional[Dict[str, AbilityState]] = None
    minimap: Optional[Dict[str, MinimapMarker]] = None
    buildings: Optional[Dict[str, Dict[str, BuildingState]]] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def game_time(self) -> Optional[int]:
        return self.map.game_time if self.map else None

    @property
    def team_name(self) -> Optional[str]:
        if self.player is None or not self.player.team_name:
            return None
        return self.player.team_name.lower()


@dataclass(frozen=True)
class EngagementEvent:
    game_time: int
    subject: str
    victim: str

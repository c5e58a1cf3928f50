# parsing.py
# Turns a decoded GSI JSON payload into an immutable Snapshot.

from typing import Any, Dict, Optional

from .schemas import (
    AbilityState,
    BuildingState,
    HeroState,
    MapState,
    MarkerIcon,
    MinimapMarker,
    PlayerState,
    Snapshot,
)

HERO_PREFIX = "npc_dota_hero_"
VICTIM_PREFIX = "victimid_"


class GSIParseError(ValueError):
    """Raised when a payload cannot be turned into a Snapshot."""


# ============================================================
# HELPERS
# ============================================================
def to_int(v: Any) -> Optional[int]:
    if v is None or isinstance(v, bool):
        return None
    if isinstance(v, int):
        return v
    try:
        if isinstance(v, float):
            if v != v:  # NaN
                return None
            return int(v)
        s = str(v).strip()
        return int(float(s)) if s else None
    except (TypeError, ValueError):
        return None


def to_bool(v: Any) -> Optional[bool]:
    if isinstance(v, bool):
        return v
    return None


def to_str(v: Any) -> Optional[str]:
    if v is None:
        return None
    return str(v)


def format_hero_name(name: str) -> str:
    """npc_dota_hero_bounty_hunter -> Bounty Hunter"""
    name = name.replace(HERO_PREFIX, "")
    return " ".join(word[:1].upper() + word[1:] for word in name.split("_"))


def format_game_time(seconds: Optional[int]) -> str:
    if seconds is None:
        return "Unknown"
    # GSI reports negative clocks before the horn
    sign = "-" if seconds < 0 else ""
    minutes, remaining = divmod(abs(seconds), 60)
    return f"{sign}{minutes}:{remaining:02d}"


def victim_name(victim_id: str) -> str:
    """victimid_3 -> Enemy3. GSI only exposes slot identifiers for victims."""
    return f"Enemy{victim_id.replace(VICTIM_PREFIX, '')}"


def _section(payload: Dict[str, Any], key: str) -> Optional[Dict[str, Any]]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise GSIParseError(f"'{key}' must be an object, got {type(value).__name__}")
    return value


# ============================================================
# SECTIONS
# ============================================================
def parse_map(raw: Dict[str, Any]) -> MapState:
    return MapState(
        name=to_str(raw.get("name")),
        match_id=to_str(raw.get("matchid")),
        game_time=to_int(raw.get("game_time")),
        clock_time=to_int(raw.get("clock_time")),
        game_state=to_str(raw.get("game_state")),
        paused=to_bool(raw.get("paused")),
        daytime=to_bool(raw.get("daytime")),
    )


def parse_kill_list(raw: Any) -> Optional[Dict[str, int]]:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise GSIParseError("'player.kill_list' must be an object")
    kills: Dict[str, int] = {}
    for victim_id, count in raw.items():
        value = to_int(count)
        if value is not None:
            kills[str(victim_id)] = value
    return kills


def parse_player(raw: Dict[str, Any]) -> PlayerState:
    return PlayerState(
        name=to_str(raw.get("name")),
        team_name=to_str(raw.get("team_name")),
        kills=to_int(raw.get("kills")),
        deaths=to_int(raw.get("deaths")),
        assists=to_int(raw.get("assists")),
        last_hits=to_int(raw.get("last_hits")),
        denies=to_int(raw.get("denies")),
        gold=to_int(raw.get("gold")),
        net_worth=to_int(raw.get("net_worth")),
        gpm=to_int(raw.get("gpm")),
        xpm=to_int(raw.get("xpm")),
        kill_list=parse_kill_list(raw.get("kill_list")),
    )


def parse_hero(raw: Dict[str, Any]) -> HeroState:
    return HeroState(
        name=to_str(raw.get("name")),
        level=to_int(raw.get("level")),
        alive=to_bool(raw.get("alive")),
        respawn_seconds=to_int(raw.get("respawn_seconds")),
        buyback_cost=to_int(raw.get("buyback_cost")),
        buyback_cooldown=to_int(raw.get("buyback_cooldown")),
        health=to_int(raw.get("health")),
        max_health=to_int(raw.get("max_health")),
        health_percent=to_int(raw.get("health_percent")),
        mana=to_int(raw.get("mana")),
        max_mana=to_int(raw.get("max_mana")),
        mana_percent=to_int(raw.get("mana_percent")),
        xpos=to_int(raw.get("xpos")),
        ypos=to_int(raw.get("ypos")),
    )


def parse_abilities(raw: Dict[str, Any]) -> Dict[str, AbilityState]:
    abilities: Dict[str, AbilityState] = {}
    for slot, ability in raw.items():
        if not isinstance(ability, dict):
            raise GSIParseError(f"ability '{slot}' must be an object")
        abilities[slot] = AbilityState(
            name=to_str(ability.get("name")),
            level=to_int(ability.get("level")),
            can_cast=to_bool(ability.get("can_cast")),
            passive=to_bool(ability.get("passive")),
            ultimate=to_bool(ability.get("ultimate")),
            cooldown=to_int(ability.get("cooldown")),
        )
    return abilities


def parse_minimap(raw: Dict[str, Any]) -> Dict[str, MinimapMarker]:
    markers: Dict[str, MinimapMarker] = {}
    for key, obj in raw.items():
        if not isinstance(obj, dict):
            raise GSIParseError(f"minimap object '{key}' must be an object")
        xpos, ypos = to_int(obj.get("xpos")), to_int(obj.get("ypos"))
        if xpos is None or ypos is None:
            raise GSIParseError(f"minimap object '{key}' has no usable position")
        markers[key] = MinimapMarker(
            name=to_str(obj.get("name")),
            team=to_int(obj.get("team")) or 0,
            xpos=xpos,
            ypos=ypos,
            icon=MarkerIcon.from_image(obj.get("image")),
        )
    return markers


def parse_buildings(raw: Dict[str, Any]) -> Dict[str, Dict[str, BuildingState]]:
    teams: Dict[str, Dict[str, BuildingState]] = {}
    for team, buildings in raw.items():
        if not isinstance(buildings, dict):
            raise GSIParseError(f"buildings for '{team}' must be an object")
        parsed: Dict[str, BuildingState] = {}
        for name, building in buildings.items():
            health = to_int(building.get("health")) if isinstance(building, dict) else None
            max_health = to_int(building.get("max_health")) if isinstance(building, dict) else None
            if health is None or max_health is None:
                raise GSIParseError(f"building '{name}' is missing health values")
            parsed[name] = BuildingState(health=health, max_health=max_health)
        teams[team] = parsed
    return teams


# ============================================================
# ENTRY POINT
# ============================================================
def parse_game_state(payload: Any) -> Snapshot:
    """
    Converts a decoded GSI payload into a Snapshot.

    Missing sections become None. Sections of the wrong shape raise GSIParseError,
    so a malformed payload never reaches the analytical components.

    :param payload: The JSON object posted by the game client.
    :return: An immutable Snapshot.
    """
    if not isinstance(payload, dict):
        raise GSIParseError(f"payload must be an object, got {type(payload).__name__}")

    map_raw = _section(payload, "map")
    player_raw = _section(payload, "player")
    hero_raw = _section(payload, "hero")
    abilities_raw = _section(payload, "abilities")
    minimap_raw = _section(payload, "minimap")
    buildings_raw = _section(payload, "buildings")

    return Snapshot(
        map=parse_map(map_raw) if map_raw is not None else None,
        player=parse_player(player_raw) if player_raw is not None else None,
        hero=parse_hero(hero_raw) if hero_raw is not None else None,
        abilities=parse_abilities(abilities_raw) if abilities_raw is not None else None,
        minimap=parse_minimap(minimap_raw) if minimap_raw is not None else None,
        buildings=parse_buildings(buildings_raw) if buildings_raw is not None else None,
        raw=payload,
    )

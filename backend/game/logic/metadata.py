"""Static catalog of supported games: DLC names, maps and per-game turn rules."""

from dataclasses import dataclass

from game.logic.enums import RoundPolicy
from shared.dal.models import GameType

# Leader key stored on a GamePlayer who picked "random"; replaced by the
# save's leader on the first upload that reveals it.
RANDOM_CIV_KEY = "LEADER_RANDOM"

GREAT_LEADERS_DLC_ID = "7A66DB58-B354-4061-8C80-95B638DD6F6C"
CAESAR_DLC_ID = "9ED63236-617C-45A6-BB70-8CB6B0BE8ED2"


@dataclass(frozen=True)
class DlcDefinition:
    id: str
    display_name: str


@dataclass(frozen=True)
class MapDefinition:
    """A selectable map.

    When regex is set, a save matches if the regex is found anywhere in its
    map file. Otherwise the file name must appear in it, ignoring case.
    """

    file: str
    display_name: str
    regex: str | None = None


@dataclass(frozen=True)
class CivGameDefinition:
    id: GameType
    display_name: str
    save_extension: str
    round_policy: RoundPolicy
    dlcs: tuple[DlcDefinition, ...] = ()
    maps: tuple[MapDefinition, ...] = ()

    def dlc_display_name(self, dlc_id: str) -> str:
        """Display name for a DLC id, falling back to the id itself."""
        for dlc in self.dlcs:
            if dlc.id == dlc_id:
                return dlc.display_name
        return dlc_id

    def find_map(self, map_file: str) -> MapDefinition | None:
        for map_definition in self.maps:
            if map_definition.file == map_file:
                return map_definition
        return None


CIV5_GAME = CivGameDefinition(
    id=GameType.CIV5,
    display_name="Civilization V",
    save_extension="Civ5Save",
    round_policy=RoundPolicy.STRICT,
    dlcs=(
        DlcDefinition("0E3751A1-F840-4e1b-9706-519BF484E59D", "Gods & Kings"),
        DlcDefinition("6DA07636-4123-4018-B643-6575B4EC336B", "Brave New World"),
        DlcDefinition("ECF1B6E3-BAF7-4A5F-A2BF-E2D5B7D28C1D", "Civilization and Scenario Pack: Denmark"),
        DlcDefinition("BBB0D085-A0B1-4D15-A2AA-0D3D8EBF29C5", "Civilization and Scenario Pack: Korea"),
        DlcDefinition("AE3CF0C6-F0A9-4D2C-8C05-55D9D1F4D67E", "Civilization and Scenario Pack: Polynesia"),
    ),
    maps=(
        MapDefinition("Assets/Maps/Continents.lua", "Continents"),
        MapDefinition("Assets/Maps/Pangaea.lua", "Pangaea"),
        MapDefinition("Assets/Maps/Fractal.lua", "Fractal"),
        MapDefinition("Assets/Maps/Archipelago.lua", "Archipelago"),
        MapDefinition("Assets/Maps/Small_Continents.lua", "Small Continents"),
        MapDefinition("Assets/Maps/Earth_Duel.Civ5Map", "Earth", regex=r"Earth_(Duel|Tiny|Small|Standard|Large|Huge)"),
    ),
)

CIV6_GAME = CivGameDefinition(
    id=GameType.CIV6,
    display_name="Civilization VI",
    save_extension="Civ6Save",
    round_policy=RoundPolicy.ALLOW_REPEAT,
    dlcs=(
        DlcDefinition("1B28771A-C749-434B-9053-D1380C553DE9", "Rise and Fall"),
        DlcDefinition("4873eb62-8ccc-4574-b784-dda455e74e68", "Gathering Storm"),
        DlcDefinition("2F6E858A-28EF-46B3-BEAC-B985E52E9BC1", "Vikings Scenario Pack"),
        DlcDefinition("3809975F-263F-40A2-A747-8BFB171D821A", "Poland Civilization & Scenario Pack"),
        DlcDefinition("E3F53C61-371C-440B-96CE-077D318B36C0", "Australia Civilization & Scenario Pack"),
        DlcDefinition("E2749E9A-8056-45CD-901B-C368C8E83DEB", "Persia and Macedon Civilization & Scenario Pack"),
        DlcDefinition("643EA320-8E1A-4CF1-A01C-00D88DDD131A", "Nubia Civilization & Scenario Pack"),
        DlcDefinition("1F367231-A040-4793-BDBB-088816853683", "Khmer and Indonesia Civilization & Scenario Pack"),
        DlcDefinition(GREAT_LEADERS_DLC_ID, "Great Leaders"),
        DlcDefinition(CAESAR_DLC_ID, "Julius Caesar"),
    ),
    maps=(
        MapDefinition("Continents.lua", "Continents"),
        MapDefinition("Pangaea.lua", "Pangaea"),
        MapDefinition("Fractal.lua", "Fractal"),
        MapDefinition("Island_Plates.lua", "Island Plates"),
        MapDefinition("InlandSea.lua", "Inland Sea"),
        MapDefinition("Terra.lua", "Terra"),
        MapDefinition("TiltedAxis.lua", "Tilted Axis", regex=r"Tilted_?Axis\.lua"),
        MapDefinition("EarthStandard.Civ6Map", "Earth", regex=r"(?i)earth_?(standard|huge|large)?\.civ6map"),
    ),
)

BEYOND_EARTH_GAME = CivGameDefinition(
    id=GameType.BEYOND_EARTH,
    display_name="Civilization: Beyond Earth",
    save_extension="CivBESave",
    round_policy=RoundPolicy.STRICT,
    dlcs=(
        DlcDefinition("2C7F1D66-0BFA-4F0A-A9C5-0C4F5D5B0F3F", "Rising Tide"),
        DlcDefinition("6A1E5C9C-8F53-4D8B-A4C6-9B6C4E1F7A21", "Exoplanets Map Pack"),
    ),
    maps=(
        MapDefinition("Assets/Maps/Terran.lua", "Terran"),
        MapDefinition("Assets/Maps/Protean.lua", "Protean"),
        MapDefinition("Assets/Maps/Atlantean.lua", "Atlantean"),
        MapDefinition("Assets/Maps/Archipelago.lua", "Archipelago"),
    ),
)

CIV_GAMES: dict[GameType, CivGameDefinition] = {
    game.id: game for game in (CIV5_GAME, CIV6_GAME, BEYOND_EARTH_GAME)
}


def get_civ_game(game_type: GameType) -> CivGameDefinition:
    """
    Look up the catalog entry for a game type.

    Raises:
        ValueError: If the game type has no catalog entry

    """
    try:
        return CIV_GAMES[game_type]
    except KeyError:
        raise ValueError(f"Unsupported game type: {game_type}") from None

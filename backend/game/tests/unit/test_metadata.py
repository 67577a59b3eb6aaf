import pytest

from game.logic.enums import RoundPolicy
from game.logic.metadata import CIV5_GAME, CIV6_GAME, CIV_GAMES, get_civ_game
from shared.dal.models import GameType


class TestCivGameCatalog:
    def test_every_game_type_has_an_entry(self):
        assert set(CIV_GAMES) == set(GameType)

    def test_lookup_by_type(self):
        assert get_civ_game(GameType.CIV6) is CIV6_GAME
        assert get_civ_game(GameType.CIV5).save_extension == "Civ5Save"

    def test_unsupported_type(self):
        with pytest.raises(ValueError, match="Unsupported game type"):
            get_civ_game("CIV7")  # type: ignore[arg-type]

    def test_round_policies(self):
        assert CIV6_GAME.round_policy == RoundPolicy.ALLOW_REPEAT
        assert CIV5_GAME.round_policy == RoundPolicy.STRICT

    def test_dlc_display_name_falls_back_to_id(self):
        assert CIV6_GAME.dlc_display_name("1B28771A-C749-434B-9053-D1380C553DE9") == "Rise and Fall"
        assert CIV6_GAME.dlc_display_name("UNKNOWN-DLC") == "UNKNOWN-DLC"

    def test_find_map(self):
        tilted = CIV6_GAME.find_map("TiltedAxis.lua")
        assert tilted is not None
        assert tilted.regex is not None
        assert CIV6_GAME.find_map("Nowhere.lua") is None

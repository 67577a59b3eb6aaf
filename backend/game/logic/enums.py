"""Enums shared across the turn submission logic."""

from enum import StrEnum


class ActorType(StrEnum):
    """Who controls a civilization slot according to the save file."""

    HUMAN = "human"
    AI = "ai"
    DEAD = "dead"


class RoundPolicy(StrEnum):
    """How the round counter behaves when the roster wraps.

    ALLOW_REPEAT permits a wrap without a round increment when the save still
    reports the previous round (Civ VI World Congress sessions).
    """

    STRICT = "strict"
    ALLOW_REPEAT = "allow_repeat"


class RejectionKind(StrEnum):
    """Machine-readable reason a submitted turn was rejected."""

    NOT_YOUR_TURN = "not_your_turn"
    DLC_MISMATCH = "dlc_mismatch"
    CIV_COUNT_MISMATCH = "civ_count_mismatch"
    GAME_SPEED_MISMATCH = "game_speed_mismatch"
    MAP_FILE_MISMATCH = "map_file_mismatch"
    MAP_SIZE_MISMATCH = "map_size_mismatch"
    CIV_TYPE_MISMATCH = "civ_type_mismatch"
    UNEXPECTED_HUMAN = "unexpected_human"
    UNDETECTED_CURRENT_PLAYER = "undetected_current_player"
    INCORRECT_PLAYER_TURN = "incorrect_player_turn"
    ROUND_MISMATCH = "round_mismatch"
    NO_NEXT_PLAYER = "no_next_player"

"""Typed domain exceptions for turn submissions.

Every user-facing validation failure is a subclass of TurnRejectedError
carrying a RejectionKind plus the actual/expected values that disagreed.
They propagate untouched through TurnSubmissionService and are converted
to HTTP 400 responses at the server boundary. Nothing is persisted when one
of them is raised.

The remaining exceptions signal missing records or broken invariants and
are never shown verbatim to players (except GameNotFoundError, a 404).
"""

from collections.abc import Iterable
from typing import ClassVar

from game.logic.enums import RejectionKind


class TurnRejectedError(Exception):
    """Base exception for a rejected turn submission.

    Attributes:
        kind: Machine-readable rejection reason.
        message: Player-facing explanation.
        actual: Value found in the uploaded save (or request).
        expected: Value the game state required.

    """

    kind: ClassVar[RejectionKind]

    def __init__(self, message: str, *, actual: object = None, expected: object = None) -> None:
        self.message = message
        self.actual = actual
        self.expected = expected
        super().__init__(message)


class NotYourTurnError(TurnRejectedError):
    kind = RejectionKind.NOT_YOUR_TURN

    def __init__(self, *, steam_id: str, current_steam_id: str | None) -> None:
        super().__init__("It's not your turn!", actual=steam_id, expected=current_steam_id)


class DlcMismatchError(TurnRejectedError):
    """Configured and detected DLC sets differ.

    not_in_save and not_in_game hold display names for the message; actual and
    expected hold the raw DLC id sets.
    """

    kind = RejectionKind.DLC_MISMATCH

    def __init__(
        self,
        *,
        actual: Iterable[str],
        expected: Iterable[str],
        not_in_save: Iterable[str],
        not_in_game: Iterable[str],
    ) -> None:
        self.not_in_save = tuple(not_in_save)
        self.not_in_game = tuple(not_in_game)
        message = "DLC mismatch!  Please ensure that you have the correct DLC enabled (or disabled)!"
        if self.not_in_save:
            message += f"\nEnabled but not in save: {', '.join(self.not_in_save)}"
        if self.not_in_game:
            message += f"\nIn save but not enabled: {', '.join(self.not_in_game)}"
        super().__init__(message, actual=tuple(sorted(actual)), expected=tuple(sorted(expected)))


class CivCountMismatchError(TurnRejectedError):
    kind = RejectionKind.CIV_COUNT_MISMATCH

    def __init__(self, *, actual: int, expected: int) -> None:
        super().__init__(
            f"Invalid number of civs in save file! (actual: {actual}, expected: {expected})",
            actual=actual,
            expected=expected,
        )


class GameSpeedMismatchError(TurnRejectedError):
    kind = RejectionKind.GAME_SPEED_MISMATCH

    def __init__(self, *, actual: str, expected: str) -> None:
        super().__init__(
            f"Invalid game speed in save file!  (actual: {actual}, expected: {expected})",
            actual=actual,
            expected=expected,
        )


class MapFileMismatchError(TurnRejectedError):
    kind = RejectionKind.MAP_FILE_MISMATCH

    def __init__(self, *, actual: str, expected: str, pattern: str | None = None) -> None:
        self.pattern = pattern
        wanted = f"expected regex: {pattern}" if pattern else f"expected: {expected}"
        super().__init__(
            f"Invalid map file in save file! (actual: {actual}, {wanted})",
            actual=actual,
            expected=expected,
        )


class MapSizeMismatchError(TurnRejectedError):
    kind = RejectionKind.MAP_SIZE_MISMATCH

    def __init__(self, *, actual: str, expected: str) -> None:
        super().__init__(
            f"Invalid map size in save file! (actual: {actual}, expected: {expected})",
            actual=actual,
            expected=expected,
        )


class CivTypeMismatchError(TurnRejectedError):
    kind = RejectionKind.CIV_TYPE_MISMATCH

    def __init__(self, *, slot: int, actual: str, expected: str) -> None:
        self.slot = slot
        super().__init__(
            f"Incorrect civ type in save file! (actual: {actual}, expected: {expected})",
            actual=actual,
            expected=expected,
        )


class UnexpectedHumanError(TurnRejectedError):
    """A save slot with no roster player is controlled by a human."""

    kind = RejectionKind.UNEXPECTED_HUMAN

    def __init__(self, *, slot: int) -> None:
        self.slot = slot
        super().__init__(f"Expected civ {slot + 1} to be AI/Dead!", actual="human", expected="ai/dead")


class UndetectedCurrentPlayerError(TurnRejectedError):
    kind = RejectionKind.UNDETECTED_CURRENT_PLAYER

    def __init__(self) -> None:
        super().__init__(
            "Couldn't detect the current player in the save file.  If you're converting this game "
            "from PBC or Online multiplayer, you may need to play a turn in Hotseat mode to get "
            "the file converted properly.",
        )


class IncorrectPlayerTurnError(TurnRejectedError):
    kind = RejectionKind.INCORRECT_PLAYER_TURN

    def __init__(self, *, expected_slot: int) -> None:
        super().__init__(
            "Incorrect player turn in save file!  This probably means it is still your turn "
            "and you have some more moves to make!",
            expected=expected_slot,
        )


class RoundMismatchError(TurnRejectedError):
    kind = RejectionKind.ROUND_MISMATCH

    def __init__(self, *, actual: int, expected: int) -> None:
        super().__init__(
            f"Incorrect game turn in save file! (actual: {actual}, expected: {expected})",
            actual=actual,
            expected=expected,
        )


class NoNextPlayerError(TurnRejectedError):
    """No human player is left to hand the turn to."""

    kind = RejectionKind.NO_NEXT_PLAYER

    def __init__(self) -> None:
        super().__init__("Couldn't find a human player to take the next turn!")


class SaveParseError(Exception):
    """The save file could not be decoded. Raised by SaveFileParser implementations."""


class GameNotFoundError(Exception):
    def __init__(self, game_id: str) -> None:
        self.game_id = game_id
        super().__init__(f"game {game_id!r} not found")


class MissingRecordError(Exception):
    """A record the game state refers to does not exist.

    Indicates storage drifted from the game record; surfaced as a generic
    server error.
    """


class MissingTurnRecordError(MissingRecordError):
    def __init__(self, *, game_id: str, turn: int) -> None:
        self.game_id = game_id
        self.turn = turn
        super().__init__(f"turn record {turn} missing for game {game_id!r}")


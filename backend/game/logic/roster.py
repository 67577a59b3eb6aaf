"""
Roster queries and immutable roster updates.

All helpers take a frozen Game and return derived values or new Game
snapshots. None of them mutate their input.
"""

from shared.dal.models import Game, GamePlayer


def player_is_human(player: GamePlayer) -> bool:
    """A slot is human-controlled when it is claimed and not surrendered."""
    return bool(player.steam_id) and not player.has_surrendered


def count_humans(game: Game) -> int:
    return sum(1 for player in game.players if player_is_human(player))


def get_current_player_index(game: Game) -> int | None:
    """Roster index of the player whose turn it is, or None."""
    if not game.current_player_steam_id:
        return None
    for index, player in enumerate(game.players):
        if player.steam_id == game.current_player_steam_id:
            return index
    return None


def get_next_player_index(game: Game) -> int | None:
    """
    Roster index of the next human player after the current one.

    Scans forward from the current index with wrap-around, skipping AI,
    unclaimed and surrendered slots. The current player is the last
    candidate, so a lone remaining human gets the turn again.

    Returns:
        The next human index, or None if no human remains

    """
    player_count = len(game.players)
    current = get_current_player_index(game)
    start = -1 if current is None else current
    for offset in range(1, player_count + 1):
        index = (start + offset) % player_count
        if player_is_human(game.players[index]):
            return index
    return None


def calculate_is_completed(game: Game) -> bool:
    """Default completion predicate: fewer than two humans remain."""
    return count_humans(game) < 2


def possibly_update_admin(game: Game) -> Game:
    """Hand the admin role to the first remaining human if the admin is gone."""
    admin = next((p for p in game.players if p.steam_id == game.created_by_steam_id), None)
    if admin is not None and player_is_human(admin):
        return game
    successor = next((p for p in game.players if player_is_human(p)), None)
    if successor is None:
        return game
    return game.model_copy(update={"created_by_steam_id": successor.steam_id})


def consume_reset_flag(game: Game) -> tuple[bool, Game]:
    """Read and clear the one-shot reset flag.

    Returns (was_set, game_without_flag). The input game is returned as-is
    when the flag is not set.
    """
    if not game.reset_game_state_on_next_upload:
        return False, game
    return True, game.model_copy(update={"reset_game_state_on_next_upload": False})

"""
Pydantic models for players, games, ratings and derived statistics.

These models are used for:
- Validating documents read from the data source
- The Stats aggregate written back onto each player
- Cache and API serialization (via model_dump)
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class GameStatus:
    """Game lifecycle states."""

    INITIALIZING = "initializing"
    LAUNCHING = "launching"
    LIVE = "live"
    COMPLETED = "completed"
    ABORTED = "aborted"


PLAYER_PICK = "playerPick"


# =============================================================================
# Stats Models
# =============================================================================


class RatingStats(BaseModel):
    """Current rating as shown on listings."""

    mean: Optional[float] = None
    deviation: Optional[float] = None
    low: Optional[float] = None
    high: Optional[float] = None


class Record(BaseModel):
    """Win/loss/tie tally."""

    win: int = 0
    loss: int = 0
    tie: int = 0

    @property
    def games(self) -> int:
        return self.win + self.loss + self.tie


class ScoreInterval(BaseModel):
    """Prediction interval over per-game differentials."""

    low: Optional[float] = None
    center: Optional[float] = None
    high: Optional[float] = None


class DraftStat(BaseModel):
    """One bucket of the draft histogram."""

    type: Literal["captain", "picked", "undrafted"]
    position: Optional[int] = None
    count: int = 0


class RoleStat(BaseModel):
    role: str
    count: int = 0


class Totals(BaseModel):
    captain: int = 0
    player: int = 0


class Replaced(BaseModel):
    into: int = 0
    out: int = 0


class Stats(BaseModel):
    """Derived statistics embedded in a player record."""

    rating: RatingStats = Field(default_factory=RatingStats)
    captain_record: Record = Field(default_factory=Record)
    player_record: Record = Field(default_factory=Record)
    captain_score: ScoreInterval = Field(default_factory=ScoreInterval)
    player_score: ScoreInterval = Field(default_factory=ScoreInterval)
    draft: list[DraftStat] = Field(default_factory=list)
    roles: list[RoleStat] = Field(default_factory=list)
    total: Totals = Field(default_factory=Totals)
    replaced: Replaced = Field(default_factory=Replaced)


# =============================================================================
# Entity Models
# =============================================================================


class Player(BaseModel):
    """Player (user) record."""

    id: str
    alias: Optional[str] = None
    steam_id: Optional[str] = None
    authorized: bool = False
    groups: list[str] = Field(default_factory=list)
    stats: Stats = Field(default_factory=Stats)

    @property
    def is_active(self) -> bool:
        """Authorized and has played at least one game as captain or roster member."""
        if not self.authorized:
            return False
        return self.stats.total.captain > 0 or self.stats.total.player > 0


class RosterSlot(BaseModel):
    user: str
    replaced: bool = False


class RoleAssignment(BaseModel):
    role: str
    players: list[RosterSlot] = Field(default_factory=list)


class Team(BaseModel):
    model_config = ConfigDict(extra="allow")

    captain: Optional[str] = None
    faction: Optional[str] = None
    composition: list[RoleAssignment] = Field(default_factory=list)

    def has_player(self, player_id: str) -> bool:
        return any(
            slot.user == player_id
            for assignment in self.composition
            for slot in assignment.players
        )


class DraftChoice(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    captain: Optional[str] = None
    player: Optional[str] = None


class DraftPoolEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    user: str


class DraftPool(BaseModel):
    model_config = ConfigDict(extra="allow")

    players: list[DraftPoolEntry] = Field(default_factory=list)


class Draft(BaseModel):
    model_config = ConfigDict(extra="allow")

    choices: list[DraftChoice] = Field(default_factory=list)
    pool: DraftPool = Field(default_factory=DraftPool)


class Game(BaseModel):
    """Game document. Extra fields are kept so they reach the player page."""

    model_config = ConfigDict(extra="allow")

    id: str
    date: Optional[datetime] = None
    status: str = GameStatus.INITIALIZING
    teams: list[Team] = Field(default_factory=list)
    score: Optional[list[int]] = None
    duration: Optional[float] = None
    draft: Draft = Field(default_factory=Draft)
    server: Optional[Any] = None
    links: list[Any] = Field(default_factory=list)

    def captain_team_index(self, player_id: str) -> Optional[int]:
        for index, team in enumerate(self.teams):
            if team.captain == player_id:
                return index
        return None

    def roster_team_index(self, player_id: str) -> Optional[int]:
        for index, team in enumerate(self.teams):
            if team.has_player(player_id):
                return index
        return None

    @property
    def is_scored(self) -> bool:
        return self.status == GameStatus.COMPLETED and self.score is not None


class RatingBefore(BaseModel):
    mean: Optional[float] = None
    deviation: Optional[float] = None


class RatingAfter(BaseModel):
    mean: Optional[float] = None
    deviation: Optional[float] = None
    low: Optional[float] = None
    high: Optional[float] = None


class Rating(BaseModel):
    """Rating snapshot recorded after a game."""

    id: str
    user: str
    game: Optional[str] = None
    date: datetime
    before: RatingBefore = Field(default_factory=RatingBefore)
    after: RatingAfter = Field(default_factory=RatingAfter)


class Restriction(BaseModel):
    id: str
    user: str
    active: bool = True
    expires: Optional[datetime] = None
    aspects: list[str] = Field(default_factory=list)
    reason: Optional[str] = None

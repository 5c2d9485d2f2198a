"""Domain models shared by agents and the orchestrator."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

IntentAgent = Literal["weather", "waterShortage", "general"]
RiskLevel = Literal["Low", "Medium", "High"]


class Intent(BaseModel):
    """Classified task category for a turn plus an optional extracted location."""

    model_config = ConfigDict(frozen=True)

    agent: IntentAgent
    location: str | None = None

    @field_validator("location", mode="before")
    @classmethod
    def _blank_location_is_none(cls, value):
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError("location must be a string")
        value = value.strip()
        return value or None


class RiskAssessment(BaseModel):
    """Structured verdict produced by the risk synthesizer from model output."""

    model_config = ConfigDict(frozen=True)

    risk: RiskLevel
    summary: str = Field(..., min_length=1)
    reasoning: str = ""
    sources: list[str] = Field(default_factory=list)

    @field_validator("sources", mode="before")
    @classmethod
    def _sources_as_list(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        return value


class MapCommand(BaseModel):
    """Instruction for the external map display. Built by the orchestrator's formatting step."""

    model_config = ConfigDict(frozen=True)

    command: Literal["SET_MARKER", "UPDATE_MARKER"]
    location: str = Field(..., min_length=1)
    risk: RiskLevel | None = None
    summary: str | None = None


class WeatherReport(BaseModel):
    """Today's forecast for a location, as returned by the weather specialist."""

    location: str
    latitude: float
    longitude: float
    date: str
    conditions: str = ""
    temperature: float | None = None
    temperature_max: float | None = None
    temperature_min: float | None = None
    humidity: float | None = None
    wind_speed: float | None = None
    rain_sum: float | None = None
    precipitation_sum: float | None = None
    summary: str = ""


class SearchHit(BaseModel):
    title: str = ""
    url: str = ""
    description: str = ""


class Forecast(BaseModel):
    """Output of the water-shortage forecast stage: verdict plus rendered reply text."""

    location: str
    assessment: RiskAssessment
    message_text: str


class TurnReply(BaseModel):
    """Successful turn payload: reply text plus zero or more map commands."""

    message_text: str
    map_commands: list[MapCommand] = Field(default_factory=list)

"""
Structured turn response models for guided character creation.
Field aliases match the JSON the model is prompted to produce.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StrictBool, StrictInt, StrictStr, field_validator

ResponseType = Literal["question", "information", "confirmation", "completion"]

ABILITY_FIELDS = ("strength", "dexterity", "constitution", "intelligence", "wisdom", "charisma")


def _whole_number(v):
    # JSON encoders often write 12 as 12.0
    if isinstance(v, float) and v.is_integer():
        return int(v)
    return v


WholeInt = Annotated[StrictInt, BeforeValidator(_whole_number)]


class AbilityScores(BaseModel):
    """The six ability score slots; None means not decided yet."""
    model_config = ConfigDict(populate_by_name=True)

    strength: Optional[WholeInt] = Field(alias="str")
    dexterity: Optional[WholeInt] = Field(alias="dex")
    constitution: Optional[WholeInt] = Field(alias="con")
    intelligence: Optional[WholeInt] = Field(alias="int")
    wisdom: Optional[WholeInt] = Field(alias="wis")
    charisma: Optional[WholeInt] = Field(alias="cha")

    @classmethod
    def empty(cls) -> 'AbilityScores':
        return cls(**{name: None for name in ABILITY_FIELDS})


class CharacterDraft(BaseModel):
    """
    Snapshot of a character in progress, rebuilt from every assistant turn.

    Unknown values are None, never placeholder strings, so callers can tell
    "not decided yet" from "decided as empty".
    """
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[StrictStr]
    race: Optional[StrictStr]
    class_: Optional[StrictStr] = Field(alias="class")
    background: Optional[StrictStr]
    level: WholeInt = 1
    ability_scores: AbilityScores = Field(alias="abilityScores")
    hp: Optional[WholeInt]
    ac: Optional[WholeInt]
    initiative: Optional[WholeInt]
    proficiencies: List[StrictStr]
    equipment: List[StrictStr]
    spells: List[StrictStr]
    features: List[StrictStr]
    is_complete: StrictBool = Field(default=False, alias="isComplete")

    @field_validator("name", "race", "class_", "background")
    @classmethod
    def blank_means_absent(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("level", mode="before")
    @classmethod
    def level_defaults_to_one(cls, v):
        return 1 if v is None else v

    @field_validator("is_complete", mode="before")
    @classmethod
    def complete_defaults_to_false(cls, v):
        return False if v is None else v

    @classmethod
    def blank(cls, **overrides) -> 'CharacterDraft':
        """A draft with every field unknown."""
        fields = {
            "name": None,
            "race": None,
            "class_": None,
            "background": None,
            "level": 1,
            "ability_scores": AbilityScores.empty(),
            "hp": None,
            "ac": None,
            "initiative": None,
            "proficiencies": [],
            "equipment": [],
            "spells": [],
            "features": [],
            "is_complete": False,
        }
        fields.update(overrides)
        return cls(**fields)


class StructuredTurnResponse(BaseModel):
    """One assistant turn: display text, turn type, suggested replies and the draft."""
    message: StrictStr
    type: ResponseType
    options: List[StrictStr]
    character: CharacterDraft

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with the JSON field names used on the wire."""
        return self.model_dump(by_alias=True)


class CharacterCreationResponse(BaseModel):
    """Envelope: {"response": {...}}."""
    response: StructuredTurnResponse

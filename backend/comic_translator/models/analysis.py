"""Analysis result data models"""
from enum import Enum
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Optional


class TextType(str, Enum):
    """Kind of text element found on a comic page"""
    SPEECH_BUBBLE = "speech_bubble"
    THOUGHT_BUBBLE = "thought_bubble"
    NARRATION = "narration"
    SOUND_EFFECT = "sound_effect"
    SIGN_TEXT = "sign_text"
    OTHER = "other"


class Explanation(BaseModel):
    """Explanation of a difficult phrase"""
    phrase: str = ""
    meaning: str = ""
    context: str = ""

    @field_validator("phrase", "meaning", "context", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value


class TextUnit(BaseModel):
    """One text element in reading order"""
    sequence: int = Field(..., ge=1)
    type: TextType = TextType.OTHER
    character: Optional[str] = None
    original_text: str = Field(..., min_length=1)
    chinese_translation: str = ""
    explanations: List[Explanation] = Field(default_factory=list)

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, value):
        # Models sometimes invent their own tags ("caption", "Speech Bubble")
        tag = str(value or "").strip().lower().replace(" ", "_").replace("-", "_")
        try:
            return TextType(tag)
        except ValueError:
            return TextType.OTHER

    @field_validator("chinese_translation", mode="before")
    @classmethod
    def _translation_present(cls, value):
        return "" if value is None else value

    @field_validator("explanations", mode="before")
    @classmethod
    def _explanations_list(cls, value):
        return value or []


class AnalysisResult(BaseModel):
    """Structured text extracted from one comic page"""
    page_number: int = Field(1, ge=1)
    reading_order: List[TextUnit] = Field(default_factory=list)

    @field_validator("page_number", mode="before")
    @classmethod
    def _default_page_number(cls, value):
        return value or 1

    @model_validator(mode="after")
    def _ordered_sequences(self) -> "AnalysisResult":
        """Sequence numbers are unique; units are kept in ascending sequence order"""
        sequences = [unit.sequence for unit in self.reading_order]
        duplicates = sorted({value for value in sequences if sequences.count(value) > 1})
        if duplicates:
            raise ValueError(f"duplicate sequence numbers in reading_order: {duplicates}")
        self.reading_order.sort(key=lambda unit: unit.sequence)
        return self


class AnalysisOptions(BaseModel):
    """Provider parameters for one analysis call"""
    provider: Optional[str] = None
    model: Optional[str] = None
    api_key: Optional[str] = None
    temperature: Optional[float] = None
    mime_type: str = "image/jpeg"

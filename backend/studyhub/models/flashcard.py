"""Flashcard content models (read-only to the review engine)."""

from pydantic import BaseModel, ConfigDict, Field


class Flashcard(BaseModel):
    """A single front/back study card."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique identifier")
    frontText: str = Field(..., description="Question side of the card")
    backText: str = Field(..., description="Answer side of the card")
    imageUrl: str | None = Field(None, description="Optional image reference")


class FlashcardSet(BaseModel):
    """A set of cards attached to a topic, as stored in the content container."""

    id: str
    topicId: str
    title: str = ""
    isActive: bool = True
    flashcards: list[Flashcard] = Field(default_factory=list)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "set-001",
                "topicId": "topic-cell-biology",
                "title": "Organelles",
                "isActive": True,
                "flashcards": [
                    {
                        "id": "card-001",
                        "frontText": "Powerhouse of the cell?",
                        "backText": "Mitochondria",
                        "imageUrl": None,
                    }
                ],
            }
        }
    )

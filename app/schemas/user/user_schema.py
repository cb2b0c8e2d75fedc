# Fichier: fightmeta/backend/app/schemas/user/user_schema.py
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import date, datetime


# --- Rang de ceinture ---
class BeltRank(BaseModel):
    discipline: str
    belt: str
    stripe: Optional[int] = Field(default=None, ge=0)
    dan: Optional[int] = Field(default=None, ge=0)


# --- Schéma pour la Création d'Utilisateur ---
# The identity comes from the token; everything else is the onboarding form.
class UserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1, max_length=50)
    image_url: Optional[str] = None
    date_of_birth: date
    country: str
    disciplines: List[str] = []
    years_of_experience: int = Field(..., ge=0)
    goals: List[str] = []
    belts: Optional[List[BeltRank]] = None

    @field_validator("username")
    @classmethod
    def _strip_username(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("username must not be blank")
        return value


class BeltUpdate(BaseModel):
    belts: List[BeltRank]


class UsernameAvailability(BaseModel):
    available: bool


# --- Schéma pour la Réponse de l'API ---
class User(BaseModel):
    id: int
    external_id: str
    name: str
    username: str
    image_url: Optional[str] = None
    date_of_birth: date
    country: str
    disciplines: List[str] = []
    years_of_experience: int
    goals: List[str] = []
    belts: Optional[List[BeltRank]] = None
    onboarding_complete: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

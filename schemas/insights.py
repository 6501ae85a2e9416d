"""Lead insight schemas."""

import re
from datetime import datetime
from enum import Enum
from typing import Literal, Optional
from pydantic import Field, model_validator

from .articles import WireModel

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?[\d\s\-()]{10,}$")


class InsightTheme(str, Enum):
    """Theme of a lead note."""
    FOOD = "food"
    BEAUTY = "beauty"
    FITNESS = "fitness"
    TECH = "tech"
    FINANCE = "finance"
    HEALTH = "health"
    EDUCATION = "education"
    TRAVEL = "travel"
    HOME = "home"
    FASHION = "fashion"
    OTHER = "other"

    @classmethod
    def coerce(cls, value: Optional[str]) -> "InsightTheme":
        """Map free text to a theme, defaulting to OTHER."""
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.OTHER


class ContactInfo(WireModel):
    """Contact details captured before reading."""
    user_name: str
    contact_preference: Literal["email", "phone"] = "email"
    value: str

    @model_validator(mode="after")
    def _check_contact(self) -> "ContactInfo":
        self.user_name = self.user_name.strip()
        self.value = self.value.strip()
        if not self.user_name:
            raise ValueError("Please enter your name")
        if self.contact_preference == "email" and not EMAIL_RE.match(self.value):
            raise ValueError("Please enter a valid email address")
        if self.contact_preference == "phone" and not PHONE_RE.match(self.value):
            raise ValueError("Please enter a valid phone number")
        return self

    @property
    def email(self) -> Optional[str]:
        return self.value if self.contact_preference == "email" else None

    @property
    def phone(self) -> Optional[str]:
        return self.value if self.contact_preference == "phone" else None


class UserInsight(WireModel):
    """
    Structured lead note for one session.

    At most one row exists per ``session_user_id``; new facts are merged
    into ``insight`` rather than appended as new rows.
    """
    id: Optional[int] = None
    session_user_id: str
    article_title: str = ""
    category: str = InsightTheme.OTHER.value
    insight: str = ""
    raw_message: str = ""
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    user_name: Optional[str] = None
    contact_preference: Optional[Literal["email", "phone"]] = None
    user_email: Optional[str] = None
    user_phone: Optional[str] = None


class ExtractedNote(WireModel):
    """Result of one insight extraction pass."""
    theme: InsightTheme = InsightTheme.OTHER
    note: str = ""

"""Request bodies for the journal API.

Fields are optional so missing values get the API's own 400 messages
instead of framework validation errors.
"""

from pydantic import BaseModel, ConfigDict, Field


class SignupRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class ConfirmRequest(BaseModel):
    email: str | None = None
    code: str | None = None
    password: str | None = None


class SaveInputsRequest(BaseModel):
    email: str | None = None
    date: str | None = None
    diet: str | None = None
    pain: str | None = None
    exercise: str | None = None
    notes: str | None = None

    def has_required_fields(self) -> bool:
        return all((self.email, self.date, self.diet, self.pain, self.exercise))


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: str | None = None
    pain_level: str | None = Field(default=None, alias="painLevel")
    category: str | None = None

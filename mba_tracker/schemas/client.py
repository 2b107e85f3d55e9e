from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_validator


class ClientCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Client name is required")
        return value


class ClientUpdate(ClientCreate):
    pass


class ClientOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_at: datetime
    updated_at: datetime

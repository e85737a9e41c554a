from pydantic import BaseModel, ConfigDict, field_validator


class SymbolEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_symbol: str
    provider_id: str

    @field_validator("user_symbol")
    @classmethod
    def normalize_user_symbol(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("user_symbol must be non-empty")
        return value

    @field_validator("provider_id")
    @classmethod
    def require_provider_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("provider_id must be non-empty")
        return value
